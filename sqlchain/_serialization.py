"""JSON encoding and decoding built on msgspec."""

from typing import Any, Literal, Union, overload

import msgspec

from sqlchain.exceptions import SerializationError

__all__ = ("decode_json", "encode_json")


def _unsupported_type(value: Any) -> Any:
    msg = f"Encoding objects of type {type(value).__name__} is unsupported"
    raise TypeError(msg)


_encoder = msgspec.json.Encoder(enc_hook=_unsupported_type, order="deterministic")
_decoder = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON.

    Mapping keys are emitted in sorted order so equal inputs always produce equal output.

    Args:
        data: Data to encode.
        as_bytes: Return bytes instead of str.

    Raises:
        SerializationError: The data holds a value msgspec cannot encode.

    Returns:
        JSON text or bytes.
    """
    try:
        encoded = _encoder.encode(data)
    except (TypeError, ValueError, msgspec.EncodeError) as exc:
        msg = f"Could not encode value to JSON: {exc}"
        raise SerializationError(msg) from exc
    return encoded if as_bytes else encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    """Decode JSON text or bytes.

    Raises:
        SerializationError: The input is not valid JSON.
    """
    try:
        return _decoder.decode(data)
    except msgspec.DecodeError as exc:
        msg = f"Could not decode JSON payload: {exc}"
        raise SerializationError(msg) from exc
