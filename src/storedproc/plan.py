"""
Call plan construction.

A call plan is the immutable description of how one input type invokes its
stored procedure: the procedure identity, the ordered parameter
declarations and the result-set bindings.

Parameter order:
    input type IN/INOUT fields (declaration order)
    then output type OUT/INOUT fields (declaration order)

Names are not de-duplicated across the two walks; an IN field on the input
and an OUT field on the output with the same bound name yield two entries.
"""
import logging
from dataclasses import dataclass

from storedproc.descriptors import ParameterDescriptor, ProcedureDescriptor
from storedproc.descriptors import ResultSetDescriptor, TypeDescriptor
from storedproc.descriptors import describe, procedure_of
from storedproc.descriptors import require_zero_arg_constructor

logger = logging.getLogger(__name__)

__all__ = ['CallPlan', 'build_plan']


@dataclass(frozen=True)
class CallPlan:
    """Immutable, shareable plan for one input type."""
    procedure: ProcedureDescriptor
    parameters: tuple[ParameterDescriptor, ...]
    result_sets: tuple[ResultSetDescriptor, ...]
    input_type: type
    output_type: type
    input_descriptor: TypeDescriptor
    output_descriptor: TypeDescriptor

    @property
    def procedure_name(self) -> str:
        return self.procedure.name

    @property
    def schema(self) -> str | None:
        return self.procedure.schema or None

    @property
    def parameter_names(self) -> list[str]:
        return [p.bound_name for p in self.parameters]

    def describe_call(self) -> str:
        params = ', '.join(f'{p.bound_name} {p.direction.name}' for p in self.parameters)
        sets = ', '.join(r.result_name for r in self.result_sets)
        return f'{self.procedure.qualified_name}({params}) result sets: [{sets}]'


def build_plan(input_type: type, output_type: type,
               default_schema: str | None = None) -> CallPlan:
    """Build the call plan for an input type and an output type.

    Raises ConfigurationError when the input type has no procedure
    declaration, either type is not a dataclass, or the output type cannot
    be constructed without arguments.
    """
    procedure = procedure_of(input_type)
    if not procedure.schema and default_schema:
        procedure = ProcedureDescriptor(name=procedure.name, schema=default_schema)

    input_descriptor = describe(input_type)
    output_descriptor = describe(output_type)
    require_zero_arg_constructor(output_type)

    parameters = [p for p in input_descriptor.parameters if p.is_input]
    parameters.extend(p for p in output_descriptor.parameters if p.is_output)

    plan = CallPlan(
        procedure=procedure,
        parameters=tuple(parameters),
        result_sets=output_descriptor.result_sets,
        input_type=input_type,
        output_type=output_type,
        input_descriptor=input_descriptor,
        output_descriptor=output_descriptor,
        )
    logger.debug(f'Built call plan for {input_type.__qualname__}: {plan.describe_call()}')
    return plan
