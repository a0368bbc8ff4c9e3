"""Exception handling for automation web endpoints.

This module maps the automation exception hierarchy onto HTTP responses:
validation problems become 400 with the full error list, unknown identifiers
404 and state machine refusals 409.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from litestar import Response
from litestar.status_codes import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from litestar_automation.exceptions import (
    AutomationError,
    ExecutionNotFoundError,
    InvalidTransitionError,
    ScheduleNotFoundError,
    ScheduleValidationError,
    TriggerNotFoundError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request
    from litestar.types import ExceptionHandlersMap

__all__ = [
    "automation_exception_handlers",
    "not_found_handler",
    "transition_handler",
    "validation_error_handler",
]


def validation_error_handler(
    _request: Request[Any, Any, Any],
    exc: WorkflowValidationError | ScheduleValidationError,
) -> Response[dict[str, Any]]:
    """Return a 400 response carrying every validation error.

    Args:
        _request: The Litestar request object.
        exc: The validation error.

    Returns:
        Response listing the validation errors.
    """
    return Response(
        content={"status_code": HTTP_400_BAD_REQUEST, "detail": str(exc), "errors": list(exc.errors)},
        status_code=HTTP_400_BAD_REQUEST,
        media_type="application/json",
    )


def not_found_handler(_request: Request[Any, Any, Any], exc: AutomationError) -> Response[dict[str, Any]]:
    """Return a 404 response for an unknown workflow, execution, schedule or trigger."""
    return Response(
        content={"status_code": HTTP_404_NOT_FOUND, "detail": str(exc)},
        status_code=HTTP_404_NOT_FOUND,
        media_type="application/json",
    )


def transition_handler(_request: Request[Any, Any, Any], exc: InvalidTransitionError) -> Response[dict[str, Any]]:
    """Return a 409 response for a refused state machine transition."""
    return Response(
        content={
            "status_code": HTTP_409_CONFLICT,
            "detail": str(exc),
            "execution_id": exc.execution_id,
            "status": exc.from_status,
        },
        status_code=HTTP_409_CONFLICT,
        media_type="application/json",
    )


def automation_exception_handlers() -> ExceptionHandlersMap:
    """Return the exception handlers the plugin registers on the application."""
    return {
        WorkflowValidationError: validation_error_handler,
        ScheduleValidationError: validation_error_handler,
        WorkflowNotFoundError: not_found_handler,
        ExecutionNotFoundError: not_found_handler,
        ScheduleNotFoundError: not_found_handler,
        TriggerNotFoundError: not_found_handler,
        InvalidTransitionError: transition_handler,
    }
