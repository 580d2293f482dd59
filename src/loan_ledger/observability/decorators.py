"""Decorators for tracing MCP components."""

import functools
from collections.abc import Callable
from datetime import datetime
from typing import Any

import logfire


def trace_tool(tool_name: str):
    """Decorator to trace MCP tool execution."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(arguments: dict[str, Any] | None = None, *args, **kwargs):
            with logfire.span(
                f"tool.execution.{tool_name}",
                tool_name=tool_name,
                tool_category=_categorize_tool(tool_name),
            ) as span:
                start_time = datetime.now()
                _add_attributes(span, "input", arguments or {})

                try:
                    result = await func(arguments, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("tool.success", False)
                    span.set_attribute("tool.error", str(e))
                    raise

                span.set_attribute("tool.success", not result.get("isError", False))
                span.set_attribute(
                    "tool.duration_ms", (datetime.now() - start_time).total_seconds() * 1000
                )
                _add_tool_result_metrics(span, tool_name, result)
                return result

        return wrapper

    return decorator


def trace_resource(resource_type: str):
    """Lightweight decorator for resource reads."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with logfire.span(
                f"resource.read.{resource_type}",
                resource_type=resource_type,
            ) as span:
                result = await func(*args, **kwargs)
                if isinstance(result, dict) and "loans" in result:
                    span.set_attribute("result.item_count", len(result["loans"]))
                return result

        return wrapper

    return decorator


def _categorize_tool(tool_name: str) -> str:
    if tool_name in ("create_loan", "return_loan", "delete_loan"):
        return "circulation"
    if tool_name.startswith(("get_", "list_")):
        return "lookup"
    return "general"


def _add_attributes(span, prefix: str, data: dict):
    for key, value in data.items():
        if isinstance(value, str | int | float | bool):
            span.set_attribute(f"{prefix}.{key}", value)


def _add_tool_result_metrics(span, tool_name: str, result: dict[str, Any]):
    data = result.get("data") or {}
    error = result.get("error") or {}
    if error:
        span.set_attribute("result.error_type", error.get("type", "unknown"))
    if tool_name == "create_loan" and "loan_id" in data:
        span.set_attribute("result.loan_id", data["loan_id"])
    elif tool_name == "return_loan" and "days_late" in data:
        span.set_attribute("result.days_late", data["days_late"])
        span.set_attribute("result.penalty_fee", data["penalty_fee"])
    elif tool_name == "list_loans" and "loans" in data:
        span.set_attribute("result.loan_count", len(data["loans"]))
