"""Configuration constants for task management functionality."""

import os

# Field limits
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500

# Sorting
DEFAULT_SORT_BY = "created"
DEFAULT_SORT_ORDER = "desc"

# Storage Configuration
STORAGE_KEY = "tasks"
AVAILABILITY_PROBE_KEY = "__local_tasks_probe__"
DEFAULT_DATABASE_PATH = os.path.expanduser("~/.local-tasks/tasks.db")
DEFAULT_KV_TABLE = "kv_store"
DEFAULT_AUTO_SAVE = True

# Backup Configuration
BACKUP_INDENT = 2
BACKUP_FILENAME_TEMPLATE = "tasks-backup-{date}.json"

# MCP Server Configuration
DEFAULT_MCP_HOST = "localhost"
DEFAULT_MCP_PORT = 3000
DEFAULT_MCP_SERVER_NAME = "local-tasks"
