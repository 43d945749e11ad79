"""
Unit tests for the procedure executor.
"""
import pytest
import storedproc as sp
from storedproc import ConfigurationError, PlanRegistry, ProcedureExecutor
from storedproc import ProcedureOptions
from tests.fixtures.mocks import CountingBuilder, RecordingInvoker
from tests.fixtures.models import CustomerQuery, CustomerResult, MixedInput
from tests.fixtures.models import MixedOutput, Order, Undeclared


@pytest.fixture
def registry(counting_builder):
    return PlanRegistry(builder=counting_builder)


def test_execute_passes_plan_and_inputs(registry):
    orders = [Order(order_id=1)]
    invoker = RecordingInvoker({'p_total': 1, 'balance': 2.5, 'orders': orders})
    executor = ProcedureExecutor(invoker, registry=registry)

    result = executor.execute(CustomerQuery(customer_id=7, region='east', balance=3.0),
                              CustomerResult)

    call = invoker.calls[0]
    plan = registry.get(CustomerQuery)
    assert call['procedure_name'] == 'get_customer'
    assert call['schema'] == 'sales'
    assert call['parameters'] is plan.parameters
    assert call['result_sets'] is plan.result_sets
    assert call['inputs'] == {'customer_id': 7, 'p_region': 'east', 'balance': 3.0}

    assert isinstance(result, CustomerResult)
    assert result.total == 1
    assert result.balance == 2.5
    assert result.orders is orders


def test_plan_built_once_across_instances(registry, counting_builder):
    executor = ProcedureExecutor(RecordingInvoker({'a': 1}), registry=registry)

    executor.execute(MixedInput(a=1), MixedOutput)
    executor.execute(MixedInput(a=2), MixedOutput)

    assert counting_builder.count == 1


def test_missing_procedure_never_invokes(registry, mocker):
    invoker = mocker.Mock(spec=sp.Invoker)
    executor = ProcedureExecutor(invoker, registry=registry)

    with pytest.raises(ConfigurationError):
        executor.execute(Undeclared(a=1), MixedOutput)

    invoker.invoke.assert_not_called()


def test_invoker_errors_propagate_unchanged(registry, mocker):
    error = sp.ExecutionError('procedure failed')
    invoker = mocker.Mock(spec=sp.Invoker)
    invoker.invoke.side_effect = error
    executor = ProcedureExecutor(invoker, registry=registry)

    with pytest.raises(sp.ExecutionError) as excinfo:
        executor.execute(MixedInput(a=1), MixedOutput)

    assert excinfo.value is error
    assert invoker.invoke.call_count == 1


def test_driver_errors_not_wrapped(registry, mocker):
    import psycopg
    invoker = mocker.Mock(spec=sp.Invoker)
    invoker.invoke.side_effect = psycopg.errors.RaiseException('boom')
    executor = ProcedureExecutor(invoker, registry=registry)

    with pytest.raises(sp.DbExecutionError):
        executor.execute(MixedInput(a=1), MixedOutput)


def test_default_registry_is_process_wide():
    executor = ProcedureExecutor(RecordingInvoker())
    assert executor.registry is PlanRegistry.get_instance()


def test_options_select_matching_process_wide_registry():
    options = ProcedureOptions(strict_output_type=False, default_schema='ops')
    executor = ProcedureExecutor(RecordingInvoker(), options=options)

    assert executor.registry is not PlanRegistry.get_instance()
    assert executor.registry is PlanRegistry.get_instance(strict_output_type=False,
                                                          default_schema='ops')
    assert executor.registry.strict_output_type is False
    assert executor.registry.default_schema == 'ops'


def test_equal_options_share_plans(counting_builder):
    PlanRegistry.get_instance(default_schema='ops').builder = counting_builder

    for _ in range(2):
        executor = ProcedureExecutor(RecordingInvoker({'a': 1}),
                                     options=ProcedureOptions(default_schema='ops'))
        executor.execute(MixedInput(a=1), MixedOutput)

    assert counting_builder.count == 1


def test_equal_options_share_plans_across_connections(mocker, counting_builder):
    PlanRegistry.get_instance(default_schema='ops').builder = counting_builder
    invoke = mocker.patch.object(sp.PostgresInvoker, 'invoke', return_value={'a': 1})

    for _ in range(3):
        cn = mocker.MagicMock(spec=['cursor'])
        executor = ProcedureExecutor.for_connection(
            cn, options=ProcedureOptions(default_schema='ops'))
        executor.execute(MixedInput(a=1), MixedOutput)

    assert counting_builder.count == 1
    assert invoke.call_count == 3


def test_second_output_type_rejected_by_default(registry):
    executor = ProcedureExecutor(RecordingInvoker(), registry=registry)
    executor.execute(MixedInput(a=1), MixedOutput)

    with pytest.raises(ConfigurationError):
        executor.execute(MixedInput(a=1), CustomerResult)


def test_second_output_type_populated_when_lenient():
    """A lenient registry reuses the first plan but fills the requested type"""
    builder = CountingBuilder()
    registry = PlanRegistry(builder=builder, strict_output_type=False)
    invoker = RecordingInvoker({'a': 4, 'p_total': 5})
    executor = ProcedureExecutor(invoker, registry=registry)

    executor.execute(MixedInput(a=1), MixedOutput)
    result = executor.execute(MixedInput(a=1), CustomerResult)

    assert isinstance(result, CustomerResult)
    assert result.total == 5
    assert invoker.calls[1]['parameters'] == invoker.calls[0]['parameters']
    assert builder.count == 1


def test_module_execute_uses_process_wide_registry():
    invoker = RecordingInvoker({'a': 9})

    result = sp.execute(invoker, MixedInput(a=1, c=2), MixedOutput)

    assert result.a == 9
    assert invoker.calls[0]['inputs'] == {'a': 1, 'c': 2}
    assert MixedInput in PlanRegistry.get_instance()


class TestForConnection:

    def test_detects_postgres(self, mocker):
        cn = mocker.MagicMock(spec=['cursor'])
        cn.dialect = 'postgresql'

        executor = ProcedureExecutor.for_connection(cn)

        assert isinstance(executor.invoker, sp.PostgresInvoker)
        assert executor.invoker.connection is cn
        assert executor.registry is PlanRegistry.get_instance()

    def test_falls_back_to_configured_dialect(self, mocker):
        cn = mocker.MagicMock(spec=['cursor'])
        options = ProcedureOptions(convert_params=False)

        executor = ProcedureExecutor.for_connection(cn, options=options)

        assert isinstance(executor.invoker, sp.PostgresInvoker)
        assert executor.invoker.convert_params is False
        assert executor.options is options

    def test_unsupported_dialect(self, mocker):
        cn = mocker.MagicMock(spec=['cursor'])
        cn.dialect = 'sqlite'

        with pytest.raises(ConfigurationError, match='No invoker for dialect'):
            ProcedureExecutor.for_connection(cn)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
