"""
Call plan registry.

Holds one call plan per input type for the lifetime of the registry. Plans
are built on first use and never evicted. Concurrent first callers for the
same input type wait for a single build and all receive the same plan
object; reads of an existing entry take no lock.

The key is the input type alone. A plan also records the output type it was
built with, so a later call pairing the same input type with a different
output type is detected: strict registries raise ConfigurationError, others
log a warning and keep serving the original plan.
"""
import logging
import threading
from collections.abc import Callable

from storedproc.exceptions import ConfigurationError
from storedproc.plan import CallPlan, build_plan

logger = logging.getLogger(__name__)

__all__ = ['PlanRegistry']


class PlanRegistry:
    """Append-only mapping of input type to call plan.

    Process-wide instances are available from `get_instance`, one per
    configuration, so executors built with equal options share their plans.
    Independent registries can be constructed and injected wherever
    isolation is needed.
    """

    _instances: dict[tuple[bool, str | None], 'PlanRegistry'] = {}
    _instance_lock = threading.RLock()

    def __init__(self, builder: Callable[..., CallPlan] = build_plan,
                 strict_output_type: bool = True,
                 default_schema: str | None = None) -> None:
        self.builder = builder
        self.strict_output_type = strict_output_type
        self.default_schema = default_schema
        self._plans: dict[type, CallPlan] = {}
        self._lock = threading.RLock()

    @classmethod
    def get_instance(cls, strict_output_type: bool = True,
                     default_schema: str | None = None) -> 'PlanRegistry':
        """Get the process-wide registry for a configuration."""
        key = (strict_output_type, default_schema or None)
        instance = cls._instances.get(key)
        if instance is None:
            with cls._instance_lock:
                instance = cls._instances.get(key)
                if instance is None:
                    instance = cls(strict_output_type=strict_output_type,
                                   default_schema=default_schema or None)
                    cls._instances[key] = instance
        return instance

    @classmethod
    def reset_instance(cls) -> None:
        """Discard the process-wide registries; the next lookup creates new ones."""
        with cls._instance_lock:
            cls._instances = {}

    def resolve(self, input_type: type, output_type: type) -> CallPlan:
        """Return the plan for `input_type`, building it on first use.

        Args:
            input_type: Class of the input object, the cache key
            output_type: Class the results are marshalled into

        Returns
            The shared CallPlan
        """
        plan = self._plans.get(input_type)
        if plan is None:
            with self._lock:
                plan = self._plans.get(input_type)
                if plan is None:
                    logger.debug(f'Plan cache miss for {input_type.__qualname__}')
                    plan = self._build(input_type, output_type)
                    self._plans[input_type] = plan
                    return plan

        logger.debug(f'Plan cache hit for {input_type.__qualname__}')
        if plan.output_type is not output_type:
            self._output_type_mismatch(plan, output_type)
        return plan

    def _build(self, input_type: type, output_type: type) -> CallPlan:
        if self.default_schema:
            return self.builder(input_type, output_type, default_schema=self.default_schema)
        return self.builder(input_type, output_type)

    def _output_type_mismatch(self, plan: CallPlan, output_type: type) -> None:
        message = (f'{plan.input_type.__qualname__} is planned with output type '
                   f'{plan.output_type.__qualname__}, not {output_type.__qualname__}')
        if self.strict_output_type:
            raise ConfigurationError(
                f'{message}; an input type may only be used with one output type')
        logger.warning(f'{message}; reusing the existing plan')

    def get(self, input_type: type) -> CallPlan | None:
        return self._plans.get(input_type)

    def __contains__(self, input_type: type) -> bool:
        return input_type in self._plans

    def __len__(self) -> int:
        return len(self._plans)
