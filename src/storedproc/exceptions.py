"""
Stored procedure bridge exception classes.
"""
import psycopg


class ProcedureError(Exception):
    """Base class for all storedproc errors.
    """


class ConfigurationError(ProcedureError):
    """Declarative metadata is missing or unusable.

    Raised for a type without a procedure descriptor, an unknown parameter
    direction, a type that is not a dataclass, or an output type without a
    zero-argument construction path.
    """


class MarshalError(ProcedureError):
    """A field could not be read from an input or written to an output.
    """


class ExecutionError(ProcedureError):
    """Procedure invocation failed inside an invoker.

    Driver errors are never wrapped in this class; invokers raise it only
    for failures they detect themselves.
    """


DbExecutionError = (
    psycopg.Error,
    ExecutionError,
    )
