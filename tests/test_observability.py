"""Tests for observability configuration and tracing decorators."""

import os
from unittest.mock import patch

from loan_ledger import observability
from loan_ledger.observability.config import ObservabilityConfig, get_environment_config
from loan_ledger.observability.decorators import _categorize_tool, trace_tool


def test_environment_config_development():
    with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
        config = get_environment_config()

    assert config.send_to_logfire is False
    assert config.console_output is True
    assert config.project_name == "loan-ledger"


def test_environment_config_production():
    with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
        config = get_environment_config()

    assert config.send_to_logfire is True
    assert config.console_output is False


def test_disabled_observability_skips_configuration():
    config = ObservabilityConfig(enabled=False)

    with patch("loan_ledger.observability.logfire.configure") as configure:
        observability.initialize_observability(config)

    configure.assert_not_called()


def test_enabled_observability_configures_logfire():
    config = ObservabilityConfig(enabled=True, send_to_logfire=False, console_output=False)

    with patch("loan_ledger.observability.logfire.configure") as configure:
        observability.initialize_observability(config)

    configure.assert_called_once()
    kwargs = configure.call_args.kwargs
    assert kwargs["service_name"] == "loan-ledger"
    assert kwargs["send_to_logfire"] is False
    assert kwargs["console"] is False


def test_tool_categories():
    assert _categorize_tool("create_loan") == "circulation"
    assert _categorize_tool("return_loan") == "circulation"
    assert _categorize_tool("get_loan") == "lookup"
    assert _categorize_tool("list_loans") == "lookup"


async def test_trace_tool_passes_result_through():
    @trace_tool("get_loan")
    async def handler(arguments):
        return {"content": [], "data": {"echo": arguments["loan_id"]}}

    result = await handler({"loan_id": 3})

    assert result["data"] == {"echo": 3}
    assert handler.__name__ == "handler"
