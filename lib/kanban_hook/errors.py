"""Exception types for the Agent Kanban hook."""


class KanbanHookError(Exception):
    """Base error for the hook library."""

    pass


class ConfigError(KanbanHookError):
    """Raised when required configuration is missing."""

    pass


class SpoolError(KanbanHookError):
    """Raised when an event cannot be written to the spool directory."""

    pass
