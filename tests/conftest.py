import pathlib
import site

import pytest
from storedproc import PlanRegistry

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def reset_registry():
    """Start and finish every test with a fresh process-wide plan registry."""
    PlanRegistry.reset_instance()
    yield
    PlanRegistry.reset_instance()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.postgres',
]
