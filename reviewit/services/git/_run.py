"""Internal helpers: run commands, CommandResult, CommandLog, GitRunnerError."""

import io
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

LOG = logging.getLogger("reviewit.services.git")


class GitRunnerError(Exception):
    """Raised by _run_git when a git command fails (client side only)."""

    pass


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command: exit status 0 means succeeded."""

    succeeded: bool
    output: str


class CommandLog:
    """Transcript of one integration attempt, owned by the job running it."""

    def __init__(self) -> None:
        self._buf = io.StringIO()

    def puts(self, text: str = "") -> None:
        """Append text, ending it with a newline if it has none."""
        self._buf.write(text if text.endswith("\n") else text + "\n")

    def command(self, line: str, output: str) -> None:
        self.puts(f"$ {line}")
        if output:
            self.puts(output)

    @property
    def text(self) -> str:
        return self._buf.getvalue()


class GitRunner:
    """Runs external commands in a workspace.

    Stateless: each call writes to the CommandLog it is given. Tests
    substitute _execute to return canned (exit_code, output) pairs.
    """

    def run(self, cmd: list[str], cwd: Path, log: CommandLog) -> CommandResult:
        """Run cmd in cwd; stdout and stderr are captured together."""
        exit_code, output = self._execute(cmd, cwd)
        output = output.strip()
        log.command(f"cd {cwd} && {shlex.join(cmd)}", output)
        if exit_code != 0:
            LOG.info("%s exited with %s in %s", cmd[0], exit_code, cwd)
        return CommandResult(succeeded=exit_code == 0, output=output)

    def _execute(self, cmd: list[str], cwd: Path) -> tuple[int, str]:
        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except FileNotFoundError:
            return 127, f"{cmd[0]}: command not found"
        return proc.returncode, proc.stdout or ""


def _run_git(args: list[str], cwd: Path, log: logging.Logger | None = None, input: str | None = None) -> str:
    """Run git command; return stdout, raise GitRunnerError on non-zero exit."""
    cmd = ["git"] + args
    try:
        proc = subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True, input=input, timeout=60)
    except subprocess.CalledProcessError as e:
        err = (e.stderr or e.stdout or "").strip()
        if log:
            log.warning("Git %s failed: %s", args, err)
        raise GitRunnerError(f"git {' '.join(args)}: {err}") from e
    except FileNotFoundError as e:
        raise GitRunnerError("git not found") from e
    return proc.stdout
