"""
Unit tests for the subprocess runner.
"""

import subprocess
from unittest.mock import patch

from aspargus.infrastructure.video.commands import Command, CommandStatus, run_command

SUBPROCESS_RUN = "aspargus.infrastructure.video.commands.subprocess.run"


class TestRunCommand:

    def test_successful_run_captures_output(self):
        completed = subprocess.CompletedProcess(["ffprobe"], 0, stdout="12.0\n", stderr="")
        with patch(SUBPROCESS_RUN, return_value=completed) as run:
            result = run_command(Command("ffprobe", ("-v", "error"), capture_output=True))

        assert result.ok
        assert result.stdout == "12.0\n"
        assert run.call_args.args[0] == ["ffprobe", "-v", "error"]
        assert run.call_args.kwargs["stdout"] == subprocess.PIPE

    def test_output_is_discarded_without_capture(self):
        completed = subprocess.CompletedProcess(["ffmpeg"], 0, stdout=None, stderr=None)
        with patch(SUBPROCESS_RUN, return_value=completed) as run:
            result = run_command(Command("ffmpeg", ("-y",)))

        assert result.ok
        assert result.stdout == ""
        assert run.call_args.kwargs["stdout"] == subprocess.DEVNULL
        assert run.call_args.kwargs["stdin"] == subprocess.DEVNULL

    def test_non_zero_exit_is_failed(self):
        completed = subprocess.CompletedProcess(["ffmpeg"], 1, stdout="", stderr="boom")
        with patch(SUBPROCESS_RUN, return_value=completed):
            result = run_command(Command("ffmpeg"))

        assert result.status is CommandStatus.FAILED
        assert result.returncode == 1
        assert not result.binary_missing

    def test_missing_binary_is_not_found(self):
        """A binary that isn't installed must be told apart from one that fails."""
        with patch(SUBPROCESS_RUN, side_effect=FileNotFoundError("ffmpeg")):
            result = run_command(Command("ffmpeg"))

        assert result.binary_missing
        assert result.returncode is None

    def test_binary_that_cannot_start_is_failed(self):
        with patch(SUBPROCESS_RUN, side_effect=PermissionError("denied")):
            result = run_command(Command("ffmpeg"))

        assert result.status is CommandStatus.FAILED
        assert "denied" in result.stderr
