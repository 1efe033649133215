"""Lazy imports for optional database drivers."""

import importlib
from types import ModuleType
from typing import Any, Optional

from sqlchain.exceptions import MissingDependencyError

__all__ = ("import_driver_module", "import_string")


def import_driver_module(module_name: str, install_package: Optional[str] = None) -> ModuleType:
    """Import an optional driver module.

    Args:
        module_name: Importable module name, e.g. ``"psycopg"``.
        install_package: Extra name to suggest when the module is missing.

    Raises:
        MissingDependencyError: The module is not installed.

    Returns:
        The imported module.
    """
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        raise MissingDependencyError(module_name.split(".")[0], install_package) from e


def import_string(dotted_path: str) -> Any:
    """Dotted Path Import.

    Import a dotted module path and return the attribute designated by the
    last name in the path.

    Args:
        dotted_path: The path of the object to import, e.g. ``"mypkg.cache.RedisCache"``.

    Raises:
        ImportError: Could not import the module or the attribute.

    Returns:
        object: The imported object.
    """
    module_path, _, attribute = dotted_path.rpartition(".")
    if not module_path:
        msg = f"{dotted_path} doesn't look like a module path"
        raise ImportError(msg)
    try:
        module = importlib.import_module(module_path)
    except Exception as e:
        msg = f"Could not import '{dotted_path}': {e}"
        raise ImportError(msg) from e
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        msg = f"Module '{module_path}' has no attribute '{attribute}' in '{dotted_path}'"
        raise ImportError(msg) from e
