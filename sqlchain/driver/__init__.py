"""Database connections used by the execution engine."""

from sqlchain.driver._create import create_connection
from sqlchain.driver._protocols import ConnectionProtocol
from sqlchain.driver.connection import DBAPIConnection
from sqlchain.driver.sqlite import SqliteConnection

__all__ = ("ConnectionProtocol", "DBAPIConnection", "SqliteConnection", "create_connection")
