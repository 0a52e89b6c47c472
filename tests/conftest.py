"""
Shared test configuration.

The application reads its settings at import time, so the environment is
seeded here before any test module imports ``mr_combiner``.
"""

import os
import tempfile
from typing import List, Optional, Sequence, Tuple

import pytest

os.environ["TRIGGER_MESSAGE"] = "combine mr"
os.environ["TRIGGER_TAG"] = "mr-combine"
os.environ["TARGET_BRANCH"] = "develop"
os.environ["GITLAB_TOKEN"] = "test_token"
os.environ["GITLAB_URL"] = "https://gitlab.example.com"
os.environ["WORKSPACE_ROOT"] = os.path.join(tempfile.gettempdir(), "mr-combiner-tests")
os.environ.pop("SECRET_TOKEN", None)

from mr_combiner.utils.shell import CommandResult  # noqa: E402


class FakeRunner:
    """
    Stand-in for ``run_command`` that records git invocations.

    Every command succeeds with empty output unless a rule matches. Rules
    match on a prefix of the git arguments (after ``git -C <path>``); the
    most recently added matching rule wins.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self._rules: List[Tuple[Tuple[str, ...], int, str]] = []

    def respond(self, *args: str, output: str = "", returncode: int = 0) -> None:
        self._rules.append((tuple(args), returncode, output))

    def fail(self, *args: str, output: str = "fatal: boom", returncode: int = 1) -> None:
        self.respond(*args, output=output, returncode=returncode)

    @staticmethod
    def git_args(argv: Sequence[str]) -> Tuple[str, ...]:
        if len(argv) > 2 and argv[1] == "-C":
            return tuple(argv[3:])
        return tuple(argv[1:])

    def __call__(self, argv: Sequence[str], cwd: Optional[str] = None) -> CommandResult:
        self.calls.append(list(argv))
        args = self.git_args(argv)
        for prefix, returncode, output in reversed(self._rules):
            if args[:len(prefix)] == prefix:
                return CommandResult(argv=tuple(argv), returncode=returncode, output=output)
        return CommandResult(argv=tuple(argv), returncode=0, output="")

    @property
    def git_calls(self) -> List[Tuple[str, ...]]:
        return [self.git_args(argv) for argv in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(call[:len(prefix)] == prefix for call in self.git_calls)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Fresh fake command runner."""
    return FakeRunner()
