"""
Type handling for procedure parameters.

This module provides:
- SqlType: integer tags for parameter declarations (JDBC type codes)
- postgres_type_names: PostgreSQL cast names for known tags
- TypeConverter: Convert NumPy and Pandas values to plain Python values

SQL type tags are opaque to the plan; only invokers interpret them.
"""
import datetime
import math
from enum import IntEnum
from typing import Any

import numpy as np
import pandas as pd

NUMPY_FLOAT_TYPES = (np.floating,)
NUMPY_INT_TYPES = (np.integer, np.unsignedinteger)


class SqlType(IntEnum):
    """Well-known SQL type tags.

    Values match the JDBC ``java.sql.Types`` codes so plans declared against
    other tooling keep their numbers. Any other integer is accepted as a tag.
    """
    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    VARBINARY = -3
    NULL = 0
    OTHER = 1111
    ARRAY = 2003
    BOOLEAN = 16
    REF_CURSOR = 2012
    TIME_WITH_TIMEZONE = 2013
    TIMESTAMP_WITH_TIMEZONE = 2014


postgres_type_names: dict[int, str] = {
    SqlType.BIT: 'boolean',
    SqlType.BOOLEAN: 'boolean',
    SqlType.TINYINT: 'smallint',
    SqlType.SMALLINT: 'smallint',
    SqlType.INTEGER: 'integer',
    SqlType.BIGINT: 'bigint',
    SqlType.FLOAT: 'double precision',
    SqlType.DOUBLE: 'double precision',
    SqlType.REAL: 'real',
    SqlType.NUMERIC: 'numeric',
    SqlType.DECIMAL: 'numeric',
    SqlType.CHAR: 'character',
    SqlType.VARCHAR: 'character varying',
    SqlType.LONGVARCHAR: 'text',
    SqlType.DATE: 'date',
    SqlType.TIME: 'time',
    SqlType.TIMESTAMP: 'timestamp',
    SqlType.TIME_WITH_TIMEZONE: 'timetz',
    SqlType.TIMESTAMP_WITH_TIMEZONE: 'timestamptz',
    SqlType.BINARY: 'bytea',
    SqlType.VARBINARY: 'bytea',
    SqlType.REF_CURSOR: 'refcursor',
}


def postgres_type_name(sql_type: int) -> str | None:
    """Return the PostgreSQL cast name for a tag, or None when unknown."""
    return postgres_type_names.get(sql_type)


# Type Converter - Handles Python -> Database value conversion

def _convert_numpy_value(val: Any) -> float | int | datetime.datetime | None:
    """Convert NumPy value to Python type."""
    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64) and np.isnat(val):
        return None

    if isinstance(val, (np.floating, np.integer | np.unsignedinteger, np.bool_)):
        return val.item()

    if isinstance(val, np.datetime64):
        return pd.Timestamp(val).to_pydatetime()

    return val


class TypeConverter:
    """Conversion of input parameter values for database drivers.

    Handles NumPy scalars and Pandas missing-value markers so that values
    lifted out of data frames can be bound directly.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a database-compatible format.

        NaN and the Pandas missing markers become None. Infinities are
        kept; PostgreSQL stores them in float and numeric columns.
        """
        if value is None:
            return None

        if isinstance(value, float) and math.isnan(value):
            return None

        if isinstance(value, type(pd.NaT)):
            return None

        if isinstance(value, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_, np.datetime64)):
            return _convert_numpy_value(value)

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        if pd.api.types.is_scalar(value) and pd.isna(value):
            return None

        return value

    @staticmethod
    def convert_params(params: Any) -> Any:
        """Convert a mapping or sequence of parameters."""
        if params is None:
            return None

        if isinstance(params, dict):
            return {k: TypeConverter.convert_value(v) for k, v in params.items()}

        if isinstance(params, list | tuple):
            return type(params)(TypeConverter.convert_value(v) for v in params)

        return TypeConverter.convert_value(params)
