from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from storedproc.invoker import get_available_dialects, is_supported_dialect
from storedproc.rows import construct_row

from libb import ConfigOptions

__all__ = ['ProcedureOptions']


@dataclass
class ProcedureOptions(ConfigOptions):
    """Options

    supported dialects: `postgresql`

    - dialect: Invoker used when no connection is available to detect one
    - strict_output_type: Raise when an input type is reused with a second
      output type (default: True). When False the first plan is reused and
      a warning is logged.
    - default_schema: Schema for procedures declared without one
    - convert_params: Convert NumPy/Pandas input values (default: True)
    - row_constructor: Builds result-set rows (default: construct_row)
    """
    dialect: str = 'postgresql'
    strict_output_type: bool = True
    default_schema: str = None
    convert_params: bool = True
    row_constructor: Callable[..., Any] | None = None

    def __post_init__(self):
        if not is_supported_dialect(self.dialect):
            available = get_available_dialects()
            raise ValueError(f'dialect must be one of: {available}')
        if self.row_constructor is None:
            self.row_constructor = construct_row
