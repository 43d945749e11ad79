"""
Procedure execution entry point.

    plan = registry.resolve(type(input), output_type)
    inputs = extract_inputs(input)
    result = invoker.invoke(...)
    return populate_output(result, output_type)

Errors from any step reach the caller unchanged; there is no retry.
"""
import logging
from typing import Any, TypeVar

from storedproc.cache import PlanRegistry
from storedproc.invoker import Invoker, get_invoker_class
from storedproc.marshal import extract_inputs, populate_output
from storedproc.options import ProcedureOptions
from storedproc.utils import get_dialect_name

logger = logging.getLogger(__name__)

__all__ = ['ProcedureExecutor', 'execute']

T = TypeVar('T')


class ProcedureExecutor:
    """Execute stored procedures declared on dataclass types.

    Args:
        invoker: Collaborator that performs the database call
        registry: Plan registry. Defaults to the process-wide registry for
            the strict_output_type and default_schema in `options`
        options: ProcedureOptions; defaults when omitted
    """

    def __init__(self, invoker: Invoker, registry: PlanRegistry | None = None,
                 options: ProcedureOptions | None = None) -> None:
        self.invoker = invoker
        self.options = options or ProcedureOptions()
        if registry is None:
            registry = PlanRegistry.get_instance(
                strict_output_type=self.options.strict_output_type,
                default_schema=self.options.default_schema)
        self.registry = registry

    @classmethod
    def for_connection(cls, cn: Any, options: ProcedureOptions | None = None,
                       registry: PlanRegistry | None = None) -> 'ProcedureExecutor':
        """Create an executor with the invoker registered for the connection's dialect.

        The dialect is detected from the connection; when it cannot be,
        `options.dialect` decides.
        """
        opts = options or ProcedureOptions()
        kwargs = {'row_constructor': opts.row_constructor,
                  'convert_params': opts.convert_params}
        try:
            dialect = get_dialect_name(cn)
        except AttributeError:
            logger.debug(f'Cannot detect dialect of {type(cn).__name__}, '
                         f'using {opts.dialect}')
            dialect = opts.dialect
        invoker = get_invoker_class(dialect)(cn, **kwargs)
        return cls(invoker, registry=registry, options=options)

    def execute(self, input: Any, output_type: type[T]) -> T:
        """Call the procedure declared on `input`'s type.

        Args:
            input: Instance of a @stored_procedure dataclass
            output_type: Dataclass to marshal OUT values and result sets into

        Returns
            A new, fully populated `output_type` instance

        Raises
            ConfigurationError: Missing or unusable declarations
            MarshalError: A field could not be read or written
        """
        plan = self.registry.resolve(type(input), output_type)
        inputs = extract_inputs(input, plan.input_descriptor)
        result = self.invoker.invoke(plan.procedure_name, plan.schema,
                                     plan.parameters, plan.result_sets, inputs)
        descriptor = plan.output_descriptor if plan.output_type is output_type else None
        return populate_output(result, output_type, descriptor)


def execute(invoker: Invoker, input: Any, output_type: type[T]) -> T:
    """Execute with a one-off executor over the process-wide plan registry.
    """
    return ProcedureExecutor(invoker).execute(input, output_type)
