"""Wrapper for converting downloaded audio with ``ffmpeg``."""

from __future__ import annotations

import logging
import shutil
from typing import Callable

from config.settings import CONVERT_TIMEOUT_SECONDS, DEFAULT_FFMPEG_BINARY
from media.process_runner import ProcessResult, run_process

logger = logging.getLogger(__name__)


class FFmpegConverter:
    """Convert a media file to the container implied by the output extension.

    Success is judged by the caller from the existence of ``output_path``;
    ffmpeg's exit status is only logged.
    """

    def __init__(
        self,
        binary: str = DEFAULT_FFMPEG_BINARY,
        *,
        timeout_seconds: float | None = CONVERT_TIMEOUT_SECONDS,
        runner: Callable[..., ProcessResult] = run_process,
    ) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds
        self._runner = runner

    @property
    def installed(self) -> bool:
        return shutil.which(self.binary) is not None

    def build_command(self, input_path, output_path) -> list[str]:
        return [
            self.binary,
            "-y",
            "-i",
            str(input_path),
            "-vn",
            str(output_path),
        ]

    def convert(
        self,
        input_path,
        output_path,
        log_path,
        *,
        cancel_check: Callable[[], bool] | None = None,
    ) -> ProcessResult:
        result = self._runner(
            self.build_command(input_path, output_path),
            log_path,
            timeout=self.timeout_seconds,
            cancel_check=cancel_check,
        )
        logger.debug(
            "ffmpeg conversion %s -> %s outcome=%s rc=%s",
            input_path,
            output_path,
            result.outcome.value,
            result.return_code,
        )
        return result
