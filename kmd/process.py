"""Subprocess execution: detached launches and blocking captured runs."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .errors import IOFailure, NonZeroExitError, ProcessTimeoutError
from .log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExecutionRequest:
    program: str
    arguments: Tuple[str, ...] = ()
    cwd: Optional[str] = None

    @classmethod
    def of(cls, program: str, *arguments: str, cwd: Optional[str] = None) -> "ExecutionRequest":
        return cls(program, tuple(arguments), cwd)

    @property
    def argv(self) -> List[str]:
        return [self.program, *self.arguments]


@dataclass(frozen=True)
class ExecutionResult:
    exit_code: int
    output_lines: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def require_success(result: ExecutionResult) -> Tuple[str, ...]:
    """Return the captured output, or raise NonZeroExitError for a failed run."""
    if not result.ok:
        raise NonZeroExitError(result.exit_code, result.output_lines)
    return result.output_lines


def _split_output(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(raw.splitlines())


class ProcessRunner:
    """Thin wrapper over ``subprocess`` used by every command handler.

    ``start_detached`` launches and forgets: the child gets no stdin, its
    output is discarded and it runs in its own session so closing the
    calling terminal does not take it down.

    ``run_blocking`` merges stderr into stdout and waits for the child to
    exit. Without a timeout it waits forever; with one, the child is
    killed on expiry and ProcessTimeoutError is raised.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def start_detached(self, request: ExecutionRequest) -> None:
        logger.debug("process.detached", argv=request.argv, cwd=request.cwd)
        try:
            subprocess.Popen(
                request.argv,
                cwd=request.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise IOFailure(request.program, exc) from exc

    def run_blocking(self, request: ExecutionRequest, timeout: Optional[float] = None) -> ExecutionResult:
        deadline = timeout if timeout is not None else self.timeout
        logger.debug("process.blocking", argv=request.argv, cwd=request.cwd, timeout=deadline)
        try:
            completed = subprocess.run(
                request.argv,
                cwd=request.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=deadline,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            # subprocess.run kills the child before re-raising
            output = exc.output.decode(errors="replace") if isinstance(exc.output, bytes) else exc.output
            logger.warning("process.timeout", argv=request.argv, timeout=deadline)
            raise ProcessTimeoutError(request.argv, deadline, _split_output(output)) from exc
        except OSError as exc:
            raise IOFailure(request.program, exc) from exc
        result = ExecutionResult(completed.returncode, _split_output(completed.stdout))
        logger.debug("process.exited", argv=request.argv, exit_code=result.exit_code, lines=len(result.output_lines))
        return result

    def run_checked(self, request: ExecutionRequest, timeout: Optional[float] = None) -> Tuple[str, ...]:
        return require_success(self.run_blocking(request, timeout))


def shell_request(shell: str, tokens: Sequence[str], cwd: Optional[str] = None) -> ExecutionRequest:
    """Join tokens with spaces into one command line for ``<shell> -c``.

    Tokens are not quoted: the line is meant to be interpreted by the shell.
    """
    return ExecutionRequest.of(shell, "-c", " ".join(tokens), cwd=cwd)


__all__ = [
    "ExecutionRequest",
    "ExecutionResult",
    "ProcessRunner",
    "require_success",
    "shell_request",
]
