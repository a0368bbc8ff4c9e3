"""Litestar plugin for workflow automation.

This module provides the AutomationPlugin for integrating litestar-automation
with Litestar applications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from litestar_automation.config import AutomationConfig
from litestar_automation.engine.tools import FunctionToolExecutor
from litestar_automation.service import AutomationService

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from litestar_automation.core.protocols import Clock, StateStore, ToolExecutor, UsageTracker

__all__ = ["AutomationPlugin", "AutomationPluginConfig"]


@dataclass
class AutomationPluginConfig:
    """Configuration for the AutomationPlugin.

    Attributes:
        service: Optional pre-configured AutomationService. If not provided,
            one is created from the remaining options.
        config: Service configuration used when the plugin creates the service.
        tool_executor: Executor for workflow steps. Defaults to an empty
            FunctionToolExecutor.
        usage_tracker: Optional recorder of successful tool runs.
        state_store: Optional state store; state is kept in memory by default.
        clock: Optional clock; defaults to the system clock.
        dependency_key: The key used for dependency injection of the
            AutomationService. The API controllers expect "automation".
        enable_api: Whether to enable the REST API endpoints. Defaults to True.
        api_path_prefix: URL path prefix for all automation API endpoints.
            Defaults to "/automation".
        api_guards: List of Litestar guards to apply to all automation API endpoints.
        api_tags: OpenAPI tags to apply to automation API endpoints.
        include_api_in_schema: Whether to include API endpoints in OpenAPI schema.
            Defaults to True.
    """

    service: AutomationService | None = None
    config: AutomationConfig = field(default_factory=AutomationConfig)
    tool_executor: ToolExecutor | None = None
    usage_tracker: UsageTracker | None = None
    state_store: StateStore | None = None
    clock: Clock | None = None
    dependency_key: str = "automation"
    enable_api: bool = True
    api_path_prefix: str = "/automation"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["Automation"])
    include_api_in_schema: bool = True


class AutomationPlugin(InitPluginProtocol):
    """Litestar plugin for workflow automation.

    This plugin provides the AutomationService through dependency injection,
    loads persisted state and starts the scheduler on application startup,
    stops pending timers on shutdown and optionally mounts the REST API.

    Example:
        Basic usage::

            from litestar import Litestar
            from litestar_automation import AutomationPlugin, AutomationPluginConfig, FunctionToolExecutor

            tools = FunctionToolExecutor()


            @tools.tool("text-cleaner")
            def clean(variables: dict) -> str:
                return variables.get("text", "").strip()


            app = Litestar(plugins=[AutomationPlugin(config=AutomationPluginConfig(tool_executor=tools))])

        Using in a route handler::

            from litestar import post
            from litestar.exceptions import NotFoundException
            from litestar_automation import AutomationService


            @post("/run/{workflow_id:str}")
            async def run(workflow_id: str, automation: AutomationService) -> dict:
                execution = await automation.execute_workflow(workflow_id)
                if execution is None:
                    raise NotFoundException(detail=f"Workflow '{workflow_id}' not found")
                return {"execution_id": execution.id, "status": execution.status}
    """

    __slots__ = ("_config", "_service")

    def __init__(self, config: AutomationPluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or AutomationPluginConfig()
        self._service: AutomationService | None = None

    @property
    def service(self) -> AutomationService:
        """Get the automation service.

        Returns:
            The AutomationService instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._service is None:
            msg = "AutomationPlugin has not been initialized. Access service after app startup."
            raise RuntimeError(msg)
        return self._service

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin when the Litestar app starts.

        This method:
        1. Creates or uses the provided AutomationService
        2. Adds the dependency provider to the app config
        3. Registers the startup and shutdown hooks of the service
        4. Optionally registers REST API controllers if enable_api=True

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.
        """
        self._service = self._config.service or AutomationService(
            self._config.tool_executor or FunctionToolExecutor(),
            self._config.config,
            usage_tracker=self._config.usage_tracker,
            state_store=self._config.state_store,
            clock=self._config.clock,
        )

        def provide_service() -> AutomationService:
            return self._service  # type: ignore[return-value]

        app_config.dependencies[self._config.dependency_key] = Provide(
            provide_service,
            sync_to_thread=False,
        )

        app_config.on_startup.append(self._service.initialize)
        app_config.on_shutdown.append(self._service.shutdown)

        if self._config.enable_api:
            from litestar import Router

            from litestar_automation.web.controllers import (
                ExecutionController,
                ScheduleController,
                TemplateController,
                TriggerController,
                WorkflowController,
            )
            from litestar_automation.web.exceptions import automation_exception_handlers

            automation_router = Router(
                path=self._config.api_path_prefix,
                route_handlers=[
                    WorkflowController,
                    TemplateController,
                    ExecutionController,
                    ScheduleController,
                    TriggerController,
                ],
                guards=self._config.api_guards,
                tags=self._config.api_tags,
                include_in_schema=self._config.include_api_in_schema,
            )
            app_config.route_handlers.append(automation_router)

            for exception_type, handler in automation_exception_handlers().items():
                app_config.exception_handlers.setdefault(exception_type, handler)

        return app_config
