"""Connection utilities with no internal dependencies.

These work with raw DBAPI connections and simple wrappers, and import
nothing from the rest of the package.
"""
from typing import Any


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection.
    """
    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return dialect.lower()
        return str(dialect.name).lower()

    if hasattr(obj, 'dbapi_connection'):
        return get_dialect_name(obj.dbapi_connection)

    if hasattr(obj, 'driver_connection'):
        return get_dialect_name(obj.driver_connection)

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'sqlite3' in type_name:
        return 'sqlite'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a wrapper."""
    for attr in ('driver_connection', 'dbapi_connection'):
        raw_conn = getattr(connection, attr, None)
        if raw_conn is not None:
            return raw_conn
    return connection
