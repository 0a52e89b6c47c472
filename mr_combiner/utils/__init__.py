"""
Utility modules for the merge request combiner.
"""

from mr_combiner.utils.logging import (
    get_logger,
    setup_logging,
    log_phase_transition,
    log_api_call,
    log_error_with_context,
)
from mr_combiner.utils.shell import CommandResult, run_command

__all__ = [
    "get_logger",
    "setup_logging",
    "log_phase_transition",
    "log_api_call",
    "log_error_with_context",
    "CommandResult",
    "run_command",
]
