"""Command-line interface for local task management."""

import argparse
import asyncio
import logging
import sys

from .logging_utils import configure_logging as setup_logging
from .logging_utils import get_logger
from .task_management.config import DEFAULT_DATABASE_PATH
from .task_management.exceptions import StorageUnavailableError
from .task_management.kv_store import SQLiteKeyValueStore
from .task_management.models import OperationResult, SortKey, SortOrder, Task, TaskPriority
from .task_management.storage import TaskStorage
from .task_management.task_manager import TaskManager

logger = get_logger(__name__)

SHORT_ID_LENGTH = 8


class TaskCLI:
    """Command-line front end over a Task Manager."""

    def __init__(self, task_manager: TaskManager) -> None:
        """
        Initialize the CLI.

        Args:
            task_manager: Initialized Task Manager
        """
        self._manager = task_manager

    def _resolve_id(self, task_id: str) -> str:
        """Expand a unique id prefix to the full id (unknown ids pass through)."""
        matches = [task.id for task in self._manager.tasks if task.id.startswith(task_id)]
        return matches[0] if len(matches) == 1 else task_id

    @staticmethod
    def _format_task(task: Task) -> str:
        mark = "x" if task.completed else " "
        line = f"[{mark}] {task.id[:SHORT_ID_LENGTH]}  {task.priority_value:<6}  {task.title}"
        if task.description:
            line += f" - {task.description}"
        return line

    def _report(self, result: OperationResult, success_message: str) -> int:
        if not result.success:
            print(f"❌ {result.error}")
            return 1
        print(f"✅ {success_message}")
        if result.saved is False:
            print("⚠️  Changes kept locally but not saved.")
        return 0

    def add(self, title: str, priority: str, description: str) -> int:
        result = self._manager.add_task(
            {"title": title, "priority": priority, "description": description}
        )
        message = f"Added task {result.task.id[:SHORT_ID_LENGTH]}" if result.task else ""
        return self._report(result, message)

    def list(
        self,
        search: str | None = None,
        completed: bool | None = None,
        priority: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> int:
        if sort_by is not None and sort_order is not None:
            self._manager.update_sort(sort_by, sort_order)
        tasks = self._manager.search(search)
        if completed is not None:
            tasks = [task for task in tasks if task.completed is completed]
        if priority is not None:
            tasks = [task for task in tasks if task.priority_value == priority]

        if not tasks:
            print("No tasks.")
            return 0
        for task in tasks:
            print(self._format_task(task))
        return 0

    def update(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
    ) -> int:
        patch = {
            name: value
            for name, value in (
                ("title", title),
                ("description", description),
                ("priority", priority),
            )
            if value is not None
        }
        if not patch:
            print("❌ Nothing to update.")
            return 1
        result = self._manager.update_task(self._resolve_id(task_id), patch)
        return self._report(result, "Task updated.")

    def toggle(self, task_id: str) -> int:
        result = self._manager.toggle_task(self._resolve_id(task_id))
        if result.success and result.task is not None:
            state = "completed" if result.task.completed else "pending"
            return self._report(result, f"Task marked {state}.")
        return self._report(result, "")

    def delete(self, task_id: str) -> int:
        result = self._manager.delete_task(self._resolve_id(task_id))
        return self._report(result, "Task deleted.")

    def clear(self) -> int:
        result = self._manager.clear_all_tasks()
        return self._report(result, "All tasks cleared.")

    def stats(self) -> int:
        stats = self._manager.get_statistics()
        print(f"Total:     {stats.total}")
        print(f"Completed: {stats.completed}")
        print(f"Pending:   {stats.pending}")
        print(
            f"Priority:  High {stats.high_priority} / "
            f"Medium {stats.medium_priority} / Low {stats.low_priority}"
        )
        print(f"Progress:  {stats.completion_rate:.0f}%")
        return 0

    def backup(self, path: str | None) -> int:
        if path is None:
            content = self._manager.backup()
            if content is None:
                print("❌ Failed to create backup.")
                return 1
            print(content)
            return 0

        written = self._manager.write_backup(path)
        if written is None:
            print("❌ Failed to write backup.")
            return 1
        print(f"✅ Backup written to {written}")
        return 0

    async def restore(self, path: str) -> int:
        result = await self._manager.restore(path)
        return self._report(result, f"Restored {self._manager.total_tasks} tasks.")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Local Tasks - manage task records stored on this machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  local-tasks add "Buy milk" --priority High      # Create a task
  local-tasks list --sort-by priority             # Highest priority first
  local-tasks list --search milk --pending        # Search pending tasks
  local-tasks toggle 1a2b3c4d                     # Complete (or reopen) by id prefix
  local-tasks backup ~/tasks-backup.json          # Export all tasks
  local-tasks restore ~/tasks-backup.json         # Replace tasks from a backup
        """,
    )

    parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DATABASE_PATH,
        metavar="PATH",
        help=f"SQLite file holding the task store (default: {DEFAULT_DATABASE_PATH})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging and debug information",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable trace logging (most verbose, includes storage payload details)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    priorities = [p.value for p in TaskPriority]

    add_parser = subparsers.add_parser("add", help="Add a task")
    add_parser.add_argument("title")
    add_parser.add_argument("--priority", "-p", choices=priorities, default="Medium")
    add_parser.add_argument("--description", "-d", default="")

    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument("--search", "-s", default=None)
    list_parser.add_argument(
        "--sort-by", choices=[k.value for k in SortKey], default=SortKey.CREATED.value
    )
    list_parser.add_argument(
        "--order", choices=[o.value for o in SortOrder], default=SortOrder.DESC.value
    )
    list_parser.add_argument("--priority", "-p", choices=priorities, default=None)
    status_group = list_parser.add_mutually_exclusive_group()
    status_group.add_argument("--completed", action="store_true")
    status_group.add_argument("--pending", action="store_true")

    update_parser = subparsers.add_parser("update", help="Update a task")
    update_parser.add_argument("task_id")
    update_parser.add_argument("--title", "-t", default=None)
    update_parser.add_argument("--description", "-d", default=None)
    update_parser.add_argument("--priority", "-p", choices=priorities, default=None)

    toggle_parser = subparsers.add_parser("toggle", help="Toggle task completion")
    toggle_parser.add_argument("task_id")

    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("task_id")

    subparsers.add_parser("clear", help="Delete all tasks")
    subparsers.add_parser("stats", help="Show task statistics")

    backup_parser = subparsers.add_parser("backup", help="Export tasks as JSON")
    backup_parser.add_argument(
        "path", nargs="?", default=None, help="File or directory (prints to stdout if omitted)"
    )

    restore_parser = subparsers.add_parser("restore", help="Replace tasks from a backup")
    restore_parser.add_argument("path")

    return parser


def configure_logging(args: argparse.Namespace) -> None:
    """Configure logging based on verbose/trace flags."""
    level = setup_logging(verbose=args.verbose, trace=args.trace)
    logger.debug(f"Logging configured at level {logging.getLevelName(level)}")


def run_command(cli: TaskCLI, args: argparse.Namespace) -> int:
    """
    Dispatch a parsed command.

    Returns:
        Process exit code
    """
    if args.command == "add":
        return cli.add(args.title, args.priority, args.description)
    if args.command == "list":
        completed = True if args.completed else False if args.pending else None
        return cli.list(
            search=args.search,
            completed=completed,
            priority=args.priority,
            sort_by=args.sort_by,
            sort_order=args.order,
        )
    if args.command == "update":
        return cli.update(
            args.task_id,
            title=args.title,
            description=args.description,
            priority=args.priority,
        )
    if args.command == "toggle":
        return cli.toggle(args.task_id)
    if args.command == "delete":
        return cli.delete(args.task_id)
    if args.command == "clear":
        return cli.clear()
    if args.command == "stats":
        return cli.stats()
    if args.command == "backup":
        return cli.backup(args.path)
    if args.command == "restore":
        return asyncio.run(cli.restore(args.path))

    print(f"❌ Unknown command: {args.command}")
    return 2


def cli_entry_with_args(argv: list[str] | None = None) -> None:
    """CLI entry point with argument parsing."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args)

    try:
        store = SQLiteKeyValueStore(args.db)
    except StorageUnavailableError as e:
        print(f"❌ {e}")
        sys.exit(1)

    manager = TaskManager(TaskStorage(store))
    manager.initialize()

    try:
        sys.exit(run_command(TaskCLI(manager), args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli_entry_with_args()
