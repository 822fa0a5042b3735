"""Agent Kanban event hook library.

Normalizes lifecycle events from the Claude and Cursor agent runtimes,
gates dangerous actions, and delivers events to the local tracking service
with retry and an on-disk spool.

Modules:
    config      - HookConfig built from the environment
    events      - mapping tables, structured extraction, CanonicalEvent
    safety      - danger and sensitive-file patterns
    delivery    - DeliveryClient (one attempt) and RetryingPoster
    spool       - SpoolStore (enqueue / drain)
    run_status  - stop reason -> RunStatusUpdate
    context     - prompt-submission guidance text
"""

from .config import HookConfig, load_config
from .context import build_prompt_context
from .delivery import DeliveryClient, DeliveryResult, RetryingPoster
from .errors import ConfigError, KanbanHookError, SpoolError
from .events import AgentType, CanonicalEvent, map_event_type, normalize_event
from .run_status import RunStatusUpdate, derive_run_status, is_stop_event, report_run_status
from .safety import SafetyVerdict, check_sensitive_path, evaluate
from .spool import DrainReport, SpoolEntry, SpoolStore

__version__ = "1.0.0"

__all__ = [
    "AgentType",
    "CanonicalEvent",
    "ConfigError",
    "DeliveryClient",
    "DeliveryResult",
    "DrainReport",
    "HookConfig",
    "KanbanHookError",
    "RetryingPoster",
    "RunStatusUpdate",
    "SafetyVerdict",
    "SpoolEntry",
    "SpoolError",
    "SpoolStore",
    "build_prompt_context",
    "check_sensitive_path",
    "derive_run_status",
    "evaluate",
    "is_stop_event",
    "load_config",
    "map_event_type",
    "normalize_event",
    "report_run_status",
]
