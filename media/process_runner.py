"""Run external tools with a merged log file, a timeout and forced termination."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 0.2


class ProcessOutcome(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT_AND_KILLED = "timed_out_and_killed"
    CANCELLED = "cancelled"
    LAUNCH_FAILED = "launch_failed"


@dataclass(frozen=True)
class ProcessResult:
    outcome: ProcessOutcome
    return_code: int | None
    elapsed_seconds: float


_POSIX = os.name == "posix"


def _kill_and_reap(proc: subprocess.Popen) -> None:
    # Wrapper scripts spawn the real tool as a child, so the whole group goes.
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass
    proc.wait()


def run_process(
    cmd_argv: Sequence[str],
    log_path,
    *,
    timeout: float | None = None,
    cancel_check: Callable[[], bool] | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> ProcessResult:
    """Run ``cmd_argv`` with stdout and stderr merged into ``log_path``.

    The log file is truncated first and exists after every call, including
    when the executable cannot be launched. When ``timeout`` elapses or
    ``cancel_check()`` returns true the process is killed and reaped before
    returning.

    The exit code is reported in the result but callers must not treat it as
    a success signal; the wrapped tools are checked by the files they leave
    behind.
    """
    argv = [str(part) for part in cmd_argv]
    if not argv:
        raise ValueError("cmd_argv must not be empty")
    log_file_path = Path(log_path)
    started = time.monotonic()

    with open(log_file_path, "w", encoding="utf-8", errors="replace") as log_file:
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                start_new_session=_POSIX,
            )
        except OSError as exc:
            log_file.write(f"failed to launch {argv[0]}: {exc}\n")
            logger.error("Failed to launch %s: %s", argv[0], exc)
            return ProcessResult(ProcessOutcome.LAUNCH_FAILED, None, time.monotonic() - started)

        deadline = started + timeout if timeout is not None else None
        outcome = ProcessOutcome.COMPLETED
        try:
            while proc.poll() is None:
                if callable(cancel_check) and cancel_check():
                    outcome = ProcessOutcome.CANCELLED
                    break
                now = time.monotonic()
                if deadline is not None and now >= deadline:
                    outcome = ProcessOutcome.TIMED_OUT_AND_KILLED
                    break
                wait_for = poll_interval
                if deadline is not None:
                    wait_for = max(0.0, min(poll_interval, deadline - now))
                time.sleep(wait_for)
        except BaseException:
            # The child must not outlive a failed poll loop.
            _kill_and_reap(proc)
            raise

        if outcome is not ProcessOutcome.COMPLETED:
            _kill_and_reap(proc)

    elapsed = time.monotonic() - started
    if outcome is ProcessOutcome.TIMED_OUT_AND_KILLED:
        logger.warning("Forcibly destroyed %s after %.1fs", argv[0], elapsed)
    elif outcome is ProcessOutcome.CANCELLED:
        logger.info("Cancelled %s after %.1fs", argv[0], elapsed)
    else:
        logger.debug("%s exited rc=%s in %.1fs", argv[0], proc.returncode, elapsed)
    return ProcessResult(outcome, proc.returncode, elapsed)
