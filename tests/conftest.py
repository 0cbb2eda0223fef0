from pathlib import Path
from unittest.mock import MagicMock

import pytest

from procbind.config import BindingConfig
from procbind.core.bindings import BindingOrchestrator

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def binding_config() -> BindingConfig:
    return BindingConfig()


@pytest.fixture
def mock_driver() -> MagicMock:
    """A bind driver whose primitives all succeed."""
    driver = MagicMock()
    driver.bind_scalar.return_value = True
    driver.bind_array.return_value = True
    driver.bind_named_collection.return_value = True
    driver.last_error.return_value = None
    driver.bound_variable.return_value = None
    return driver


@pytest.fixture
def mock_statement() -> MagicMock:
    statement = MagicMock()
    statement.sql = "BEGIN :return_outvar := app.url_pkg.puturl(:url, :shorturl); END;"
    return statement


@pytest.fixture
def orchestrator(mock_driver: MagicMock, binding_config: BindingConfig) -> BindingOrchestrator:
    return BindingOrchestrator.from_config(mock_driver, binding_config)
