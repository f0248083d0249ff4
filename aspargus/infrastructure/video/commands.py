"""
Typed subprocess invocation for the external video tools.

ffprobe and ffmpeg fail in two very different ways: the binary can be
missing from the host (nothing will work, the batch must stop) or the
binary can run and fail on one file (only that video is affected).
The runner keeps that distinction in the result type so callers never
have to guess from error text.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class CommandStatus(Enum):
    OK = "ok"
    FAILED = "failed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Command:
    """
    A subprocess to run: binary name, ordered arguments and capture mode.

    When ``capture_output`` is False, stdout and stderr are discarded.
    """
    binary: str
    args: tuple[str, ...] = ()
    capture_output: bool = False

    @property
    def argv(self) -> list[str]:
        return [self.binary, *self.args]


@dataclass(frozen=True)
class CommandResult:
    status: CommandStatus
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK

    @property
    def binary_missing(self) -> bool:
        return self.status is CommandStatus.NOT_FOUND


def run_command(command: Command) -> CommandResult:
    """
    Run a command to completion and classify the outcome.

    Blocks until the process exits; no timeout is applied.
    """
    logger.debug(f"Running: {' '.join(command.argv)}")

    output = subprocess.PIPE if command.capture_output else subprocess.DEVNULL
    try:
        completed = subprocess.run(
            command.argv,
            stdin=subprocess.DEVNULL,
            stdout=output,
            stderr=output,
            text=True,
            errors="replace",
        )
    except FileNotFoundError:
        return CommandResult(status=CommandStatus.NOT_FOUND)
    except OSError as e:
        # Permission denied, exec format error... the binary exists but can't run
        logger.debug(f"{command.binary} could not be started: {e}")
        return CommandResult(status=CommandStatus.FAILED, stderr=str(e))

    status = CommandStatus.OK if completed.returncode == 0 else CommandStatus.FAILED
    return CommandResult(
        status=status,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
