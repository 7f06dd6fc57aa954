"""Single-user local task list."""

__version__ = "1.0.0"
