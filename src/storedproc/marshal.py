"""
Marshalling between typed objects and procedure parameter maps.

`extract_inputs` reads IN/INOUT fields from an input object into a mapping
keyed by bound name. `populate_output` builds a fresh output object from the
mapping an invoker returns. Both accept the descriptor already held by a
call plan and only describe the class themselves when called standalone.
"""
from collections.abc import Mapping
from typing import Any, TypeVar

from storedproc.descriptors import TypeDescriptor, describe
from storedproc.descriptors import require_zero_arg_constructor
from storedproc.exceptions import MarshalError

__all__ = ['extract_inputs', 'populate_output']

T = TypeVar('T')


def extract_inputs(instance: Any, descriptor: TypeDescriptor | None = None) -> dict[str, Any]:
    """Map bound name to current value for every IN and INOUT field.

    OUT fields are never included. When two fields share a bound name the
    later declaration wins.
    """
    descriptor = descriptor or describe(type(instance))
    inputs = {}
    for parameter in descriptor.parameters:
        if not parameter.is_input:
            continue
        try:
            inputs[parameter.bound_name] = getattr(instance, parameter.field_name)
        except AttributeError as e:
            raise MarshalError(
                f'Cannot read field {parameter.field_name!r} from '
                f'{type(instance).__qualname__}') from e
    return inputs


def populate_output(result: Mapping[str, Any], output_type: type[T],
                    descriptor: TypeDescriptor | None = None) -> T:
    """Construct `output_type` and fill its declared fields from `result`.

    Parameter fields of any direction take `result[bound_name]`, result-set
    fields take `result[result_name]`. Absent keys leave None; the database
    may omit OUT parameters it never set.

    Raises
        ConfigurationError: output_type has no zero-argument constructor
        MarshalError: output_type could not be constructed, or a field
            could not be written
    """
    descriptor = descriptor or describe(output_type)
    require_zero_arg_constructor(output_type)
    result = result or {}
    try:
        output = output_type()
    except Exception as e:
        raise MarshalError(f'Cannot construct {output_type.__qualname__}') from e

    for parameter in descriptor.parameters:
        _write(output, parameter.field_name, result.get(parameter.bound_name))
    for binding in descriptor.result_sets:
        _write(output, binding.field_name, result.get(binding.result_name))

    return output


def _write(output: Any, field_name: str, value: Any) -> None:
    try:
        setattr(output, field_name, value)
    except (AttributeError, TypeError) as e:
        raise MarshalError(
            f'Cannot write field {field_name!r} on {type(output).__qualname__}') from e
