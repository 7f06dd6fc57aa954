"""Exceptions raised by the storage layer."""


class TaskListError(Exception):
    """Base class for tasklist errors."""


class StorageError(TaskListError):
    """Persistent storage could not be used."""


class StorageReadFailure(StorageError):
    """The persisted value is missing structure or cannot be parsed."""


class StorageWriteFailure(StorageError):
    """The storage backend rejected a write (quota exceeded, I/O error)."""
