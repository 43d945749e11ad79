"""
PostgreSQL invoker built on psycopg.

Procedures are called with named notation:

    CALL "sales"."get_customer"("customer_id" => %(customer_id)s::integer,
                                "total" => NULL::integer,
                                "orders" => NULL::refcursor)

Output-only parameters are passed as NULL, as PostgreSQL requires for OUT
arguments of CALL (PostgreSQL 14+). The single row CALL returns carries the
OUT and INOUT values. Result sets are returned through refcursor arguments
named after the binding; each cursor is drained with FETCH ALL inside the
caller's transaction.
"""
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from functools import wraps
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from storedproc.descriptors import ParameterDescriptor, ResultSetDescriptor
from storedproc.invoker.base import Invoker, register_invoker
from storedproc.rows import construct_row
from storedproc.types import SqlType, TypeConverter, postgres_type_name
from storedproc.utils import get_raw_connection

logger = logging.getLogger(__name__)


def dumpcall(func):
    """Decorator for logging procedure calls and their timing."""
    @wraps(func)
    def wrapper(self, procedure_name: str, schema: str | None, *args: Any, **kwargs: Any):
        start = time.time()
        qualified = f'{schema}.{procedure_name}' if schema else procedure_name
        logger.debug(f'CALL {qualified}')
        try:
            return func(self, procedure_name, schema, *args, **kwargs)
        except Exception:
            logger.error(f'Error calling procedure {qualified}')
            raise
        finally:
            logger.debug(f'Call time: {time.time() - start:.4f}s')
    return wrapper


def _typed(value: sql.Composable, sql_type: int) -> sql.Composable:
    type_name = postgres_type_name(sql_type)
    if type_name is None:
        return value
    return sql.SQL('{}::{}').format(value, sql.SQL(type_name))


@register_invoker('postgresql')
class PostgresInvoker(Invoker):
    """Invoke procedures over a psycopg 3 connection.

    Args:
        connection: psycopg connection, or a wrapper exposing one
        row_constructor: Builds one row object per fetched result-set row
        convert_params: Convert NumPy/Pandas input values before binding
    """

    def __init__(self, connection: Any,
                 row_constructor: Callable[[type, Mapping[str, Any]], Any] = construct_row,
                 convert_params: bool = True) -> None:
        self.connection = get_raw_connection(connection)
        self.row_constructor = row_constructor
        self.convert_params = convert_params

    def build_call(self, procedure_name: str, schema: str | None,
                   parameters: Sequence[ParameterDescriptor],
                   result_sets: Sequence[ResultSetDescriptor],
                   inputs: Mapping[str, Any]) -> tuple[sql.Composed, dict[str, Any]]:
        """Compose the CALL statement and its named parameters.

        The first declaration of a bound name decides how it is passed;
        later declarations of the same name are the same argument.
        """
        if schema:
            name = sql.Identifier(schema, procedure_name)
        else:
            name = sql.Identifier(procedure_name)

        arguments = []
        params = {}
        seen = set()
        for parameter in parameters:
            bound = parameter.bound_name
            if bound in seen:
                continue
            seen.add(bound)
            if parameter.is_input and bound in inputs:
                value = _typed(sql.Placeholder(bound), parameter.sql_type)
                params[bound] = inputs[bound]
            else:
                value = _typed(sql.SQL('NULL'), parameter.sql_type)
            arguments.append(sql.SQL('{} => {}').format(sql.Identifier(bound), value))

        for binding in result_sets:
            if binding.result_name in seen:
                continue
            seen.add(binding.result_name)
            arguments.append(sql.SQL('{} => {}').format(
                sql.Identifier(binding.result_name),
                _typed(sql.SQL('NULL'), SqlType.REF_CURSOR)))

        query = sql.SQL('CALL {}({})').format(name, sql.SQL(', ').join(arguments))
        if self.convert_params:
            params = TypeConverter.convert_params(params)
        return query, params

    @dumpcall
    def invoke(self, procedure_name: str, schema: str | None,
               parameters: Sequence[ParameterDescriptor],
               result_sets: Sequence[ResultSetDescriptor],
               inputs: Mapping[str, Any]) -> dict[str, Any]:
        query, params = self.build_call(procedure_name, schema, parameters,
                                        result_sets, inputs)
        logger.debug(f'args: {params}')
        with self.connection.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone() if cursor.description else None
            result = dict(row or {})
            for binding in result_sets:
                portal = result.get(binding.result_name)
                if portal is None:
                    continue
                cursor.execute(sql.SQL('FETCH ALL FROM {}').format(sql.Identifier(portal)))
                result[binding.result_name] = [
                    self.row_constructor(binding.row_type, columns)
                    for columns in cursor.fetchall()
                    ]
                cursor.execute(sql.SQL('CLOSE {}').format(sql.Identifier(portal)))
        return result
