"""
External command execution.

Every git invocation goes through ``run_command``, which never raises on a
non-zero exit status; callers inspect the returned ``CommandResult``.
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from mr_combiner.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and combined stdout/stderr of one external command."""

    argv: Tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.argv)


CommandRunner = Callable[[Sequence[str]], CommandResult]


def _preview(text: str, limit: int = 200) -> str:
    compact = text.replace("\n", "\\n").strip()
    if not compact:
        return "<empty>"
    if len(compact) <= limit:
        return compact
    return f"{compact[:limit]}..."


def run_command(argv: Sequence[str], cwd: Optional[Path] = None) -> CommandResult:
    """
    Run a command synchronously and capture its combined output.

    Args:
        argv: Program and arguments
        cwd: Working directory, inherited when None

    Returns:
        CommandResult with exit status and merged stdout/stderr
    """
    try:
        proc = subprocess.run(
            list(argv),
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as e:
        # Missing executable or bad cwd surfaces like any other failed command
        logger.error(f"Could not start command {' '.join(argv)}: {e}")
        return CommandResult(argv=tuple(argv), returncode=127, output=str(e))

    result = CommandResult(argv=tuple(argv), returncode=proc.returncode, output=proc.stdout or "")
    if not result.ok:
        logger.warning(
            f"Command failed: {result.command}",
            extra={"exit_code": result.returncode, "output": _preview(result.output)},
        )
    else:
        logger.debug(f"Command succeeded: {result.command}")
    return result
