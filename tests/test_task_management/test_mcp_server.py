"""Unit tests for MCP Server tool handlers."""

import sys
from unittest.mock import patch

import pytest

from local_tasks.task_management.exceptions import StorageUnavailableError
from local_tasks.task_management.kv_store import InMemoryKeyValueStore
from local_tasks.task_management.mcp_server import (
    TOOL_NAMES,
    TaskToolHandlers,
    cli_entry,
    create_mcp_server,
)
from local_tasks.task_management.storage import TaskStorage
from local_tasks.task_management.task_manager import TaskManager


@pytest.fixture
def task_manager() -> TaskManager:
    """Create an initialized manager over an in-memory store."""
    manager = TaskManager(TaskStorage(InMemoryKeyValueStore()))
    manager.initialize()
    return manager


@pytest.fixture
def handlers(task_manager: TaskManager) -> TaskToolHandlers:
    return TaskToolHandlers(task_manager)


@pytest.mark.unit
class TestMCPServerCreation:
    """Test MCP server construction."""

    def test_server_uses_given_name(self, task_manager: TaskManager) -> None:
        """Test the FastMCP instance carries the configured name."""
        server = create_mcp_server(task_manager, server_name="test-tasks")
        assert server.name == "test-tasks"

    def test_servers_are_independent(self) -> None:
        """Test each server is bound to its own manager."""
        first = TaskManager(TaskStorage(InMemoryKeyValueStore()))
        second = TaskManager(TaskStorage(InMemoryKeyValueStore()))
        assert create_mcp_server(first) is not create_mcp_server(second)

    def test_tool_names(self) -> None:
        """Test the advertised tool list."""
        assert TOOL_NAMES == [
            "list_tasks",
            "add_task",
            "update_task",
            "toggle_task",
            "delete_task",
            "get_task_statistics",
        ]


@pytest.mark.unit
class TestAddTaskTool:
    """Test add_task handler."""

    def test_add_task_success(self, handlers: TaskToolHandlers, task_manager: TaskManager) -> None:
        """Test a valid task is created and returned."""
        response = handlers.add_task(title="Write docs", priority="High")

        assert response["success"] is True
        assert response["task"]["title"] == "Write docs"
        assert response["task"]["priority"] == "High"
        assert task_manager.total_tasks == 1

    def test_add_task_default_priority(self, handlers: TaskToolHandlers) -> None:
        """Test tasks default to Medium priority."""
        response = handlers.add_task(title="Something")
        assert response["task"]["priority"] == "Medium"

    def test_add_task_validation_error(self, handlers: TaskToolHandlers) -> None:
        """Test validation errors are returned per field."""
        response = handlers.add_task(title="  ", priority="urgent")

        assert response["success"] is False
        assert set(response["errors"]) == {"title", "priority"}


@pytest.mark.unit
class TestOtherTools:
    """Test list, update, toggle, delete and statistics handlers."""

    def test_list_tasks_filters(self, handlers: TaskToolHandlers) -> None:
        """Test search, completion and priority filters combine."""
        handlers.add_task(title="Buy milk", priority="High")
        handlers.add_task(title="Buy bread", priority="Low")
        done = handlers.add_task(title="Pay rent", priority="High")
        handlers.toggle_task(done["task"]["id"])

        assert len(handlers.list_tasks()["tasks"]) == 3
        assert [t["title"] for t in handlers.list_tasks(search="buy", priority="High")["tasks"]] == [
            "Buy milk"
        ]
        assert [t["title"] for t in handlers.list_tasks(completed=True)["tasks"]] == ["Pay rent"]

    def test_list_tasks_invalid_priority(self, handlers: TaskToolHandlers) -> None:
        """Test an unknown priority filter is reported."""
        response = handlers.list_tasks(priority="Urgent")
        assert response == {"success": False, "error": "Invalid priority: Urgent"}

    def test_update_task(self, handlers: TaskToolHandlers) -> None:
        """Test only the given fields change."""
        created = handlers.add_task(title="Draft", priority="Low", description="keep me")
        response = handlers.update_task(created["task"]["id"], title="Final")

        assert response["success"] is True
        assert response["task"]["title"] == "Final"
        assert response["task"]["description"] == "keep me"

    def test_update_missing_task(self, handlers: TaskToolHandlers) -> None:
        """Test unknown ids are reported as not found."""
        response = handlers.update_task("missing-id", title="x")
        assert response["success"] is False
        assert response["not_found"] is True

    def test_toggle_and_delete(self, handlers: TaskToolHandlers, task_manager: TaskManager) -> None:
        """Test toggling and deleting by id."""
        task_id = handlers.add_task(title="Chore")["task"]["id"]

        assert handlers.toggle_task(task_id)["task"]["completed"] is True
        assert handlers.delete_task(task_id)["success"] is True
        assert task_manager.total_tasks == 0
        assert handlers.delete_task(task_id)["not_found"] is True

    def test_statistics(self, handlers: TaskToolHandlers) -> None:
        """Test statistics are returned as a plain dictionary."""
        handlers.add_task(title="A", priority="High")
        stats = handlers.get_task_statistics()
        assert stats["total"] == 1
        assert stats["high_priority"] == 1
        assert stats["completion_rate"] == 0

    def test_unsaved_changes_are_flagged(self, task_manager: TaskManager) -> None:
        """Test a failed save adds a warning to the response."""
        store = InMemoryKeyValueStore()
        manager = TaskManager(TaskStorage(store))
        manager.initialize()
        store.enabled = False

        response = TaskToolHandlers(manager).add_task(title="Offline")

        assert response["success"] is True
        assert "warning" in response


@pytest.mark.unit
class TestMCPServerEntryPoint:
    """Test the console entry point."""

    def test_unusable_database_exits_cleanly(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a store that cannot be opened exits 1 with a message on stderr."""
        with (
            patch.object(sys, "argv", ["local-tasks-mcp"]),
            patch("local_tasks.task_management.mcp_server.configure_logging"),
            patch(
                "local_tasks.task_management.mcp_server.SQLiteKeyValueStore",
                side_effect=StorageUnavailableError("Cannot open task database"),
            ),
            patch("local_tasks.task_management.mcp_server.create_mcp_server") as mock_create,
        ):
            with pytest.raises(SystemExit) as exc_info:
                cli_entry()

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "❌ Cannot open task database" in captured.err
        assert captured.out == ""
        mock_create.assert_not_called()
