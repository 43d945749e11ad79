"""
Invoker factory for dialect-specific procedure execution.
"""
from typing import Any

from storedproc.exceptions import ConfigurationError
from storedproc.invoker.base import _INVOKER_REGISTRY
from storedproc.invoker.base import Invoker as Invoker
from storedproc.invoker.base import register_invoker as register_invoker
from storedproc.invoker.postgres import PostgresInvoker as PostgresInvoker
from storedproc.utils import get_dialect_name


def _validate_dialect(dialect: str) -> None:
    """Raise ConfigurationError if dialect is not registered."""
    if dialect not in _INVOKER_REGISTRY:
        available = list(_INVOKER_REGISTRY.keys())
        raise ConfigurationError(f'No invoker for dialect: {dialect}. Available: {available}')


def get_invoker_class(dialect: str) -> type[Invoker]:
    """Get the invoker class for a dialect without instantiating."""
    _validate_dialect(dialect)
    return _INVOKER_REGISTRY[dialect]


def get_invoker(cn: Any, **kwargs: Any) -> Invoker:
    """Create the invoker registered for the connection's dialect."""
    return get_invoker_class(get_dialect_name(cn))(cn, **kwargs)


def get_available_dialects() -> list[str]:
    """Return list of registered dialect names."""
    return list(_INVOKER_REGISTRY.keys())


def is_supported_dialect(dialect: str) -> bool:
    """Check if a dialect has an invoker."""
    return dialect in _INVOKER_REGISTRY
