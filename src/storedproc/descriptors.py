"""
Declarative metadata for stored procedure types.

Input and output types are dataclasses. The procedure is attached to the
input class with the `stored_procedure` decorator; parameters and result
sets are attached to fields with `param` and `result_set`:

    @stored_procedure('get_customer', schema='sales')
    @dataclass
    class CustomerQuery:
        customer_id: int = param(Direction.IN, SqlType.INTEGER)

    @dataclass
    class CustomerResult:
        total: int = param(Direction.OUT, SqlType.INTEGER, name='p_total')
        orders: list = result_set('orders', Order)

`describe` turns a class into a `TypeDescriptor` once and memoizes it.
"""
import dataclasses
import inspect
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

import cachetools
from storedproc.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    'Direction',
    'ProcedureDescriptor',
    'ParameterDescriptor',
    'ResultSetDescriptor',
    'TypeDescriptor',
    'stored_procedure',
    'param',
    'result_set',
    'procedure_of',
    'describe',
    'has_zero_arg_constructor',
    'require_zero_arg_constructor',
]

PROCEDURE_ATTR = '__stored_procedure__'
PARAMETER_KEY = 'storedproc.parameter'
RESULT_SET_KEY = 'storedproc.result_set'


class Direction(Enum):
    """Flow of a parameter relative to the procedure."""
    IN = 'IN'
    OUT = 'OUT'
    INOUT = 'INOUT'

    @classmethod
    def coerce(cls, value: Any) -> 'Direction':
        """Return a member for a member or its case-insensitive name.

        There is no fallback member; anything unrecognized is an error.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ConfigurationError(f'Unknown parameter direction: {value!r}. '
                                 f'Expected one of: {[d.name for d in cls]}')

    @property
    def is_input(self) -> bool:
        return self in {Direction.IN, Direction.INOUT}

    @property
    def is_output(self) -> bool:
        return self in {Direction.OUT, Direction.INOUT}


@dataclass(frozen=True)
class ProcedureDescriptor:
    """Procedure identity attached to an input type."""
    name: str
    schema: str = ''

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ConfigurationError('Stored procedure name must be non-empty')

    @property
    def qualified_name(self) -> str:
        if self.schema:
            return f'{self.schema}.{self.name}'
        return self.name


@dataclass(frozen=True)
class ParameterDescriptor:
    """One procedure parameter bound to a dataclass field."""
    field_name: str
    direction: Direction
    sql_type: int
    bound_name: str

    @property
    def is_input(self) -> bool:
        return self.direction.is_input

    @property
    def is_output(self) -> bool:
        return self.direction.is_output


@dataclass(frozen=True)
class ResultSetDescriptor:
    """A named result set bound to a list-valued output field."""
    field_name: str
    result_name: str
    row_type: type


@dataclass(frozen=True)
class TypeDescriptor:
    """Everything declared on one class, in field declaration order."""
    cls: type
    procedure: ProcedureDescriptor | None
    parameters: tuple[ParameterDescriptor, ...]
    result_sets: tuple[ResultSetDescriptor, ...]

    @property
    def input_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters if p.is_input)

    @property
    def output_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters if p.is_output)


@dataclass(frozen=True)
class _ParameterMarker:
    direction: Direction
    sql_type: int
    name: str = ''


@dataclass(frozen=True)
class _ResultSetMarker:
    name: str
    row_type: type


def stored_procedure(name: str, schema: str = ''):
    """Class decorator naming the procedure an input type calls.

    Usage:
        @stored_procedure('refresh_totals', schema='billing')
        @dataclass
        class RefreshTotals:
            ...
    """
    descriptor = ProcedureDescriptor(name=name, schema=schema or '')

    def decorator(cls: type) -> type:
        setattr(cls, PROCEDURE_ATTR, descriptor)
        return cls
    return decorator


def param(direction: Direction | str, sql_type: int, name: str = '',
          default: Any = None, default_factory: Any = dataclasses.MISSING) -> Any:
    """Declare a dataclass field as a procedure parameter.

    The field defaults to None so output types keep a zero-argument
    constructor. An empty `name` binds the parameter to the field name.
    """
    marker = _ParameterMarker(direction=Direction.coerce(direction),
                              sql_type=int(sql_type), name=name or '')
    metadata = {PARAMETER_KEY: marker}
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def result_set(name: str, row_type: type) -> Any:
    """Declare a list field populated from the named result set."""
    marker = _ResultSetMarker(name=name or '', row_type=row_type)
    return dataclasses.field(default_factory=list, metadata={RESULT_SET_KEY: marker})


def procedure_of(cls: type) -> ProcedureDescriptor:
    """Return the procedure declared directly on `cls`.
    """
    descriptor = cls.__dict__.get(PROCEDURE_ATTR) if isinstance(cls, type) else None
    if descriptor is None:
        raise ConfigurationError(
            f'{_type_name(cls)} is missing a @stored_procedure declaration')
    return descriptor


_describe_cache = cachetools.LRUCache(maxsize=256)
_describe_lock = threading.RLock()


@cachetools.cached(_describe_cache, lock=_describe_lock)
def describe(cls: type) -> TypeDescriptor:
    """Collect the procedure, parameter and result-set declarations of `cls`.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise ConfigurationError(
            f'{_type_name(cls)} must be a dataclass to carry procedure metadata')

    parameters = []
    result_sets = []
    for field in dataclasses.fields(cls):
        marker = field.metadata.get(PARAMETER_KEY)
        if marker is not None:
            parameters.append(ParameterDescriptor(
                field_name=field.name,
                direction=marker.direction,
                sql_type=marker.sql_type,
                bound_name=marker.name or field.name,
                ))
        rs_marker = field.metadata.get(RESULT_SET_KEY)
        if rs_marker is not None:
            result_sets.append(ResultSetDescriptor(
                field_name=field.name,
                result_name=rs_marker.name or field.name,
                row_type=rs_marker.row_type,
                ))

    _warn_duplicates(cls, [p.bound_name for p in parameters], 'parameter')
    _warn_duplicates(cls, [r.result_name for r in result_sets], 'result set')

    descriptor = TypeDescriptor(
        cls=cls,
        procedure=cls.__dict__.get(PROCEDURE_ATTR),
        parameters=tuple(parameters),
        result_sets=tuple(result_sets),
        )
    logger.debug(f'Described {_type_name(cls)}: {len(parameters)} parameters, '
                 f'{len(result_sets)} result sets')
    return descriptor


def _warn_duplicates(cls: type, names: list[str], kind: str) -> None:
    seen = set()
    for name in names:
        if name in seen:
            logger.warning(f'{_type_name(cls)} binds more than one {kind} to {name!r}; '
                           'the last declared field wins')
        seen.add(name)


def has_zero_arg_constructor(cls: type) -> bool:
    """Check whether `cls()` can be called without arguments."""
    try:
        inspect.signature(cls).bind()
    except TypeError:
        return False
    except ValueError:
        # no introspectable signature, e.g. some builtins
        return True
    return True


def require_zero_arg_constructor(cls: type) -> None:
    if not has_zero_arg_constructor(cls):
        raise ConfigurationError(
            f'{_type_name(cls)} cannot be constructed without arguments; '
            'give every field a default')


def _type_name(cls: Any) -> str:
    if isinstance(cls, type):
        return f'{cls.__module__}.{cls.__qualname__}'
    return repr(cls)
