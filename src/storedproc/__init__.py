"""
Stored procedure calls driven by declared dataclass types.

    @sp.stored_procedure('get_customer', schema='sales')
    @dataclass
    class CustomerQuery:
        customer_id: int = sp.param(sp.Direction.IN, sp.SqlType.INTEGER)

    @dataclass
    class CustomerResult:
        total: int = sp.param(sp.Direction.OUT, sp.SqlType.INTEGER)
        orders: list = sp.result_set('orders', Order)

    executor = sp.ProcedureExecutor.for_connection(cn)
    result = executor.execute(CustomerQuery(42), CustomerResult)

Call plans are resolved once per input type and shared by every caller.
"""
__version__ = '0.1.0'

from storedproc.cache import PlanRegistry
from storedproc.descriptors import Direction, ParameterDescriptor
from storedproc.descriptors import ProcedureDescriptor, ResultSetDescriptor
from storedproc.descriptors import TypeDescriptor, describe, param
from storedproc.descriptors import result_set, stored_procedure
from storedproc.exceptions import ConfigurationError, DbExecutionError
from storedproc.exceptions import ExecutionError, MarshalError, ProcedureError
from storedproc.executor import ProcedureExecutor, execute
from storedproc.invoker import Invoker, PostgresInvoker, get_invoker
from storedproc.invoker import register_invoker
from storedproc.marshal import extract_inputs, populate_output
from storedproc.options import ProcedureOptions
from storedproc.plan import CallPlan, build_plan
from storedproc.rows import construct_row
from storedproc.types import SqlType

__all__ = [
    'CallPlan',
    'ConfigurationError',
    'DbExecutionError',
    'Direction',
    'ExecutionError',
    'Invoker',
    'MarshalError',
    'ParameterDescriptor',
    'PlanRegistry',
    'PostgresInvoker',
    'ProcedureDescriptor',
    'ProcedureError',
    'ProcedureExecutor',
    'ProcedureOptions',
    'ResultSetDescriptor',
    'SqlType',
    'TypeDescriptor',
    'build_plan',
    'construct_row',
    'describe',
    'execute',
    'extract_inputs',
    'get_invoker',
    'param',
    'populate_output',
    'register_invoker',
    'result_set',
    'stored_procedure',
]
