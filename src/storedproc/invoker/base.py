"""
Base invoker interface for procedure execution.

An invoker is the collaborator that owns a database connection and turns a
call plan into an actual procedure call. The executor hands it the
procedure identity, the ordered parameter declarations, the result-set
bindings and the input values, and expects back a mapping of bound names to
output values, with each result-set name mapped to a list of row objects.

Invokers never manage transactions; committing is left to the caller.
"""
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from storedproc.descriptors import ParameterDescriptor, ResultSetDescriptor

# Registry of dialect name -> invoker class
_INVOKER_REGISTRY: dict[str, type['Invoker']] = {}


def register_invoker(dialect: str):
    """Decorator to register an invoker class for a dialect.

    Usage:
        @register_invoker('postgresql')
        class PostgresInvoker(Invoker):
            ...
    """
    def decorator(cls: type['Invoker']) -> type['Invoker']:
        _INVOKER_REGISTRY[dialect] = cls
        return cls
    return decorator


class Invoker(ABC):
    """Base class for procedure invokers.
    """

    @abstractmethod
    def invoke(self, procedure_name: str, schema: str | None,
               parameters: Sequence[ParameterDescriptor],
               result_sets: Sequence[ResultSetDescriptor],
               inputs: Mapping[str, Any]) -> Mapping[str, Any]:
        """Call the procedure and return its outputs by bound name.

        Args:
            procedure_name: Unqualified procedure name
            schema: Schema name, or None
            parameters: Parameter declarations in plan order
            result_sets: Result-set bindings to return as row lists
            inputs: Input values by bound name

        Returns
            Mapping of OUT/INOUT bound names and result-set names to values
        """
