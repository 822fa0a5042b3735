#!/usr/bin/env python3
"""
Gates Package - synchronous safety checks for pre-execution events.

Each module registers its gates into the shared GATES list on import.

Modules:
  _bash.py   - dangerous shell commands (deny)
  _files.py  - sensitive file access (warn)
"""

from ._common import GATES, register_gate, gate_key, HookResult
from ._bash import check_dangerous_command
from ._files import check_sensitive_file

__all__ = [
    "GATES",
    "register_gate",
    "gate_key",
    "HookResult",
    "check_dangerous_command",
    "check_sensitive_file",
]
