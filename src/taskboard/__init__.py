"""Taskboard - task management API with categories and a task lifecycle."""

__version__ = "0.1.0"
