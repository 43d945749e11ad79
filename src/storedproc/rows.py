"""Row construction for result sets."""
import dataclasses
from collections.abc import Mapping
from typing import Any

from storedproc.exceptions import MarshalError

__all__ = ['RowAdapter', 'construct_row']


class RowAdapter:
    """Simple row adapter for converting database rows to dictionaries."""

    def __init__(self, row: Any):
        self.row = row

    def to_dict(self) -> dict[str, Any]:
        """Convert row to dictionary."""
        if isinstance(self.row, dict):
            return self.row
        # psycopg/sqlite3 rows and other mappings
        if hasattr(self.row, 'keys') and callable(self.row.keys):
            return {key: self.row[key] for key in self.row.keys()}  # noqa: SIM118
        # Namedtuple
        if hasattr(self.row, '_asdict'):
            return self.row._asdict()
        raise MarshalError(f'Cannot read columns from row of type {type(self.row).__name__}')


def _normalize(name: str) -> str:
    return name.replace('_', '').lower()


def _match_columns(names: list[str], columns: dict[str, Any]) -> dict[str, Any]:
    """Match column names to attribute names.

    Exact names first, then case-insensitive with underscores ignored, so
    `customer_id`, `CUSTOMER_ID` and `customerId` all bind to `customer_id`.
    """
    by_normal = {}
    for column in columns:
        by_normal.setdefault(_normalize(column), column)

    matched = {}
    for name in names:
        if name in columns:
            matched[name] = columns[name]
        elif _normalize(name) in by_normal:
            matched[name] = columns[by_normal[_normalize(name)]]
    return matched


def construct_row(row_type: type, columns: Mapping[str, Any] | Any) -> Any:
    """Construct one `row_type` instance from a row of columns.

    Supported row types:
    - dict or any Mapping subclass: a plain dict of the columns
    - dataclasses: init fields matched to columns, unmatched columns ignored
    - named tuples: fields matched to columns, missing fields None
    - other classes: zero-argument construction, then matched attributes set
    """
    columns = RowAdapter(columns).to_dict()
    try:
        if isinstance(row_type, type) and issubclass(row_type, Mapping):
            return dict(columns)

        if dataclasses.is_dataclass(row_type):
            names = [f.name for f in dataclasses.fields(row_type) if f.init]
            return row_type(**_match_columns(names, columns))

        if hasattr(row_type, '_fields'):
            matched = _match_columns(list(row_type._fields), columns)
            return row_type(**{name: matched.get(name) for name in row_type._fields})

        row = row_type()
        names = list(getattr(row_type, '__annotations__', {})) or list(vars(row))
        for name, value in _match_columns(names, columns).items():
            setattr(row, name, value)
        return row
    except (TypeError, AttributeError, ValueError) as e:
        raise MarshalError(
            f'Cannot construct {getattr(row_type, "__qualname__", row_type)} '
            f'from columns {list(columns)}') from e
