"""MCP Server exposing a Task Manager through FastMCP tools."""

import logging
import sys
from typing import Any

from fastmcp import FastMCP

from ..logging_utils import configure_logging
from .config import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_MCP_HOST,
    DEFAULT_MCP_PORT,
    DEFAULT_MCP_SERVER_NAME,
)
from .exceptions import StorageUnavailableError
from .kv_store import SQLiteKeyValueStore
from .models import OperationResult, TaskPriority
from .storage import TaskStorage
from .task_manager import TaskManager

logger = logging.getLogger(__name__)

TOOL_NAMES = [
    "list_tasks",
    "add_task",
    "update_task",
    "toggle_task",
    "delete_task",
    "get_task_statistics",
]


def _result_to_dict(result: OperationResult) -> dict[str, Any]:
    response: dict[str, Any] = {"success": result.success}
    if result.task is not None:
        response["task"] = result.task.to_dict()
    if not result.success:
        response["error"] = result.error
        if result.errors:
            response["errors"] = result.errors
        if result.not_found:
            response["not_found"] = True
    if result.saved is False:
        response["warning"] = "Changes are kept in memory but were not saved"
    return response


class TaskToolHandlers:
    """Tool implementations bound to one Task Manager instance."""

    def __init__(self, task_manager: TaskManager) -> None:
        self._task_manager = task_manager

    def list_tasks(
        self,
        search: str | None = None,
        completed: bool | None = None,
        priority: str | None = None,
    ) -> dict[str, Any]:
        """List tasks in the manager's sort order with optional filters."""
        if priority is not None and priority not in {p.value for p in TaskPriority}:
            return {"success": False, "error": f"Invalid priority: {priority}"}

        tasks = self._task_manager.search(search)
        if completed is not None:
            tasks = [task for task in tasks if task.completed is completed]
        if priority is not None:
            tasks = [task for task in tasks if task.priority_value == priority]

        return {"success": True, "tasks": [task.to_dict() for task in tasks]}

    def add_task(
        self, title: str, priority: str = "Medium", description: str = ""
    ) -> dict[str, Any]:
        """Create a task."""
        result = self._task_manager.add_task(
            {"title": title, "priority": priority, "description": description}
        )
        return _result_to_dict(result)

    def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
        completed: bool | None = None,
    ) -> dict[str, Any]:
        """Update the given fields of a task; omitted fields are kept."""
        patch = {
            name: value
            for name, value in (
                ("title", title),
                ("description", description),
                ("priority", priority),
                ("completed", completed),
            )
            if value is not None
        }
        return _result_to_dict(self._task_manager.update_task(task_id, patch))

    def toggle_task(self, task_id: str) -> dict[str, Any]:
        return _result_to_dict(self._task_manager.toggle_task(task_id))

    def delete_task(self, task_id: str) -> dict[str, Any]:
        return _result_to_dict(self._task_manager.delete_task(task_id))

    def get_task_statistics(self) -> dict[str, Any]:
        return self._task_manager.get_statistics().to_dict()


def create_mcp_server(
    task_manager: TaskManager, server_name: str = DEFAULT_MCP_SERVER_NAME
) -> FastMCP:
    """
    Build a FastMCP server whose tools operate on ``task_manager``.

    Args:
        task_manager: Initialized Task Manager
        server_name: MCP server name

    Returns:
        FastMCP instance with the task tools registered
    """
    mcp = FastMCP(server_name)
    handlers = TaskToolHandlers(task_manager)

    @mcp.tool()
    def list_tasks(
        search: str | None = None,
        completed: bool | None = None,
        priority: str | None = None,
    ) -> dict[str, Any]:
        """
        List tasks with optional filters.

        Args:
            search: Case-insensitive text to find in title or description
            completed: Only completed (true) or pending (false) tasks
            priority: Filter by priority (High, Medium, Low)
        """
        return handlers.list_tasks(search=search, completed=completed, priority=priority)

    @mcp.tool()
    def add_task(title: str, priority: str = "Medium", description: str = "") -> dict[str, Any]:
        """
        Add a new task.

        Args:
            title: Task title (required, up to 100 characters)
            priority: Task priority (High, Medium, Low)
            description: Optional description (up to 500 characters)
        """
        return handlers.add_task(title=title, priority=priority, description=description)

    @mcp.tool()
    def update_task(
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
        completed: bool | None = None,
    ) -> dict[str, Any]:
        """
        Update fields of an existing task.

        Args:
            task_id: Task ID
            title: New title
            description: New description
            priority: New priority (High, Medium, Low)
            completed: New completion flag
        """
        return handlers.update_task(
            task_id,
            title=title,
            description=description,
            priority=priority,
            completed=completed,
        )

    @mcp.tool()
    def toggle_task(task_id: str) -> dict[str, Any]:
        """Flip the completion flag of a task."""
        return handlers.toggle_task(task_id)

    @mcp.tool()
    def delete_task(task_id: str) -> dict[str, Any]:
        """Delete a task."""
        return handlers.delete_task(task_id)

    @mcp.tool()
    def get_task_statistics() -> dict[str, Any]:
        """Get task statistics (totals, per-priority counts, completion rate)."""
        return handlers.get_task_statistics()

    logger.info(f"MCP server '{server_name}' created with {len(TOOL_NAMES)} tools")
    return mcp


def cli_entry() -> None:
    """CLI entry point for the MCP server."""
    transport_type = "stdio"
    if len(sys.argv) > 1 and sys.argv[1] in ("stdio", "sse", "http"):
        transport_type = "sse" if sys.argv[1] == "http" else sys.argv[1]

    configure_logging()

    try:
        store = SQLiteKeyValueStore(DEFAULT_DATABASE_PATH)
    except StorageUnavailableError as e:
        # stdout carries the stdio protocol
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    task_manager = TaskManager(TaskStorage(store))
    task_manager.initialize()
    mcp = create_mcp_server(task_manager)

    if transport_type == "stdio":
        mcp.run(transport="stdio")
    else:
        logger.info(f"Server will listen on http://{DEFAULT_MCP_HOST}:{DEFAULT_MCP_PORT}")
        mcp.run(transport="sse", host=DEFAULT_MCP_HOST, port=DEFAULT_MCP_PORT)


if __name__ == "__main__":
    cli_entry()
