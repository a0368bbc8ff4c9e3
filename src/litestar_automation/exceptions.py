"""Exception hierarchy for litestar-automation."""

from __future__ import annotations

__all__ = (
    "AutomationError",
    "ExecutionNotFoundError",
    "InvalidTransitionError",
    "ScheduleNotFoundError",
    "ScheduleValidationError",
    "StateMigrationError",
    "StepExecutionError",
    "ToolInvocationError",
    "ToolNotFoundError",
    "TriggerNotFoundError",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
)


class AutomationError(Exception):
    """Base exception for all litestar-automation errors.

    All exceptions raised by litestar-automation inherit from this class,
    so callers can catch every automation-related error with a single except clause.
    """


class WorkflowNotFoundError(AutomationError):
    """Raised when a workflow definition is not found.

    Attributes:
        workflow_id: The ID of the workflow that was not found.
    """

    def __init__(self, workflow_id: str) -> None:
        """Initialize the exception with workflow details.

        Args:
            workflow_id: The ID of the workflow that was not found.
        """
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' not found")


class ExecutionNotFoundError(AutomationError):
    """Raised when a workflow execution is not found.

    Attributes:
        execution_id: The ID of the execution that was not found.
    """

    def __init__(self, execution_id: str) -> None:
        self.execution_id = execution_id
        super().__init__(f"Execution '{execution_id}' not found")


class ScheduleNotFoundError(AutomationError):
    """Raised when a schedule is not found."""

    def __init__(self, schedule_id: str) -> None:
        self.schedule_id = schedule_id
        super().__init__(f"Schedule '{schedule_id}' not found")


class TriggerNotFoundError(AutomationError):
    """Raised when a trigger is not found."""

    def __init__(self, trigger_id: str) -> None:
        self.trigger_id = trigger_id
        super().__init__(f"Trigger '{trigger_id}' not found")


class ToolNotFoundError(AutomationError):
    """Raised by a tool executor when a step references an unknown tool.

    Attributes:
        tool_id: The tool identifier that could not be resolved.
    """

    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f'Tool "{tool_id}" not found')


class ToolInvocationError(AutomationError):
    """Raised by a tool when an invocation fails.

    The message is recorded verbatim on the failed step result.

    Attributes:
        tool_id: The tool that failed.
    """

    def __init__(self, tool_id: str, message: str) -> None:
        self.tool_id = tool_id
        super().__init__(message)


class StepExecutionError(AutomationError):
    """Describes a failed step of an execution.

    The engine never raises this to callers of ``execute_workflow``; it is used
    to build the human-readable error recorded on the failed execution.

    Attributes:
        step_index: Zero-based index of the failed step.
        cause: The failure message reported for the step.
    """

    def __init__(self, step_index: int, cause: str) -> None:
        """Initialize the exception with step details.

        Args:
            step_index: Zero-based index of the failed step.
            cause: The failure message reported for the step.
        """
        self.step_index = step_index
        self.cause = cause
        super().__init__(f"Step {step_index + 1} failed: {cause}")


class InvalidTransitionError(AutomationError):
    """Raised when an execution is moved along an edge the state machine does not allow.

    Attributes:
        execution_id: The execution being transitioned.
        from_status: The current status.
        to_status: The requested status.
    """

    def __init__(self, execution_id: str, from_status: str, to_status: str) -> None:
        """Initialize the exception with transition details.

        Args:
            execution_id: The execution being transitioned.
            from_status: The current status.
            to_status: The requested status.
        """
        self.execution_id = execution_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition for execution '{execution_id}' from '{from_status}' to '{to_status}'")


class WorkflowValidationError(AutomationError):
    """Raised when a workflow definition does not pass validation.

    The definition store itself reports problems as a list; this exception is
    for callers that prefer to raise, such as the HTTP layer.

    Attributes:
        errors: List of validation error messages.
    """

    def __init__(self, errors: list[str]) -> None:
        """Initialize the exception with validation errors.

        Args:
            errors: List of validation error messages.
        """
        self.errors = errors
        super().__init__(f"Workflow validation failed: {'; '.join(errors)}")


class ScheduleValidationError(AutomationError):
    """Raised when a schedule's type-specific fields are inconsistent.

    Attributes:
        errors: List of validation error messages.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Schedule validation failed: {'; '.join(errors)}")


class StateMigrationError(AutomationError):
    """Raised when a persisted blob cannot be brought up to the current schema version.

    Attributes:
        key: Storage key of the blob.
        found_version: Schema version stamped on the stored blob.
        expected_version: Schema version this code writes.
    """

    def __init__(self, key: str, found_version: int, expected_version: int) -> None:
        self.key = key
        self.found_version = found_version
        self.expected_version = expected_version
        super().__init__(
            f"Cannot migrate state '{key}' from schema version {found_version} to {expected_version}"
        )
