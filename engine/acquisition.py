"""Acquire audio for a song from YouTube.

search -> rank -> download -> (convert) -> store -> cleanup

Every outcome is an :class:`AcquisitionResult`; no exception crosses
:meth:`AcquisitionPipeline.provide`. Transient files are registered in an
:class:`ArtifactScope` before any process writes them and are removed on every
exit path after the store attempt.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Callable, Protocol

from db.asset_store import StorageGateway, StorageScope
from engine.artifacts import LOG_KINDS, ArtifactKind, ArtifactScope, use_then_delete
from engine.config import AudioSourceConfig
from engine.paths import ensure_dir
from engine.ranking import merge_candidates, select_closest
from engine.types import AcquisitionResult, Candidate, ClientInfo, FailureReason, SongRequest, client_tag
from engine.youtube_search import YouTubeSearchClient
from media.ffmpeg import FFmpegConverter
from media.mime import LOG_MIME_TYPE, mime_type_for_format
from media.process_runner import ProcessOutcome, ProcessResult, run_process

logger = logging.getLogger(__name__)


class _Converter(Protocol):
    @property
    def installed(self) -> bool:
        """Whether the conversion tool can be invoked."""

    def convert(self, input_path, output_path, log_path, *, cancel_check=None) -> ProcessResult:
        """Convert ``input_path`` into ``output_path`` logging to ``log_path``."""


class AcquisitionPipeline:
    """Resolve a :class:`SongRequest` to a stored audio asset."""

    def __init__(
        self,
        config: AudioSourceConfig,
        storage: StorageGateway,
        *,
        search_client: YouTubeSearchClient | None = None,
        converter: _Converter | None = None,
        runner: Callable[..., ProcessResult] = run_process,
    ) -> None:
        self._config = config
        self._storage = storage
        self._search = search_client or YouTubeSearchClient(config.api_key)
        self._converter = converter or FFmpegConverter(
            config.ffmpeg_path,
            timeout_seconds=config.convert_timeout_seconds,
        )
        self._runner = runner
        if not config.api_key:
            logger.warning(
                "No YouTube API key configured; audio acquisition is disabled. "
                "See https://developers.google.com/youtube/v3/getting-started to obtain one."
            )

    @property
    def audio_format(self) -> str:
        return self._config.audio_format

    def audio_key(self, request: SongRequest) -> str:
        return f"{request.id}.{self._config.audio_format}"

    def select_candidate(self, request: SongRequest, client_info: ClientInfo | None = None) -> Candidate | None:
        """Search both query variants and return the closest-duration candidate."""
        tag = client_tag(client_info)
        artist_title, artist_title_lyrics = self._search.candidates_for(request, self._config.search_max_results)
        merged = merge_candidates(artist_title, artist_title_lyrics, dedupe=self._config.dedupe_candidates)
        closest = select_closest(merged, request.duration_ms)
        if closest is None:
            logger.info(
                '[%s] Searches for both "%s" and "%s" turned up nothing',
                tag,
                request.search_query,
                request.lyrics_query,
            )
        return closest

    def locate(self, request: SongRequest, client_info: ClientInfo | None = None) -> str | None:
        """Return the URL of the video that would be downloaded, without downloading it."""
        if not self._config.api_key:
            return None
        logger.info("[%s] Attempting to provide a location for %s", client_tag(client_info), request)
        try:
            closest = self.select_candidate(request, client_info)
        except Exception:
            logger.exception("[%s] Location lookup failed for %s", client_tag(client_info), request.id)
            return None
        return closest.url if closest else None

    def provide(
        self,
        request: SongRequest,
        client_info: ClientInfo | None = None,
        *,
        cancel_check: Callable[[], bool] | None = None,
    ) -> AcquisitionResult:
        tag = client_tag(client_info)
        if not self._config.api_key:
            logger.info("[%s] No API key configured; not acquiring audio for %s", tag, request.id)
            return AcquisitionResult.failed(FailureReason.NO_API_KEY)

        logger.info("[%s] Attempting to provide audio for %s", tag, request)
        closest = None
        try:
            closest = self.select_candidate(request, client_info)
            if closest is None:
                return AcquisitionResult.failed(FailureReason.NO_CANDIDATE_FOUND)
            logger.info("[%s] Settled on %s (%s)", tag, closest.title, closest.url)
            return self._acquire(request, closest, client_info, cancel_check)
        except Exception:
            logger.exception("[%s] Audio acquisition failed unexpectedly for %s", tag, request.id)
            return AcquisitionResult.failed(FailureReason.UNEXPECTED_ERROR, closest)

    def _acquire(
        self,
        request: SongRequest,
        candidate: Candidate,
        client_info: ClientInfo | None,
        cancel_check: Callable[[], bool] | None,
    ) -> AcquisitionResult:
        work_dir = Path(self._config.work_dir)
        ensure_dir(work_dir)
        token = uuid.uuid4().hex
        audio_format = self._config.audio_format

        with ArtifactScope() as scope:
            raw = scope.register(work_dir / f"{token}.tmp", ArtifactKind.RAW_DOWNLOAD)
            scope.register(work_dir / f"{token}.tmp.part", ArtifactKind.PARTIAL_DOWNLOAD)
            final = scope.register(work_dir / f"{token}.{audio_format}", ArtifactKind.CONVERTED_AUDIO)
            download_log = scope.register(work_dir / f"{request.id}-{token}-download.log", ArtifactKind.DOWNLOAD_LOG)
            convert_log = scope.register(work_dir / f"{request.id}-{token}-convert.log", ArtifactKind.CONVERT_LOG)
            try:
                return self._download_convert_store(
                    request,
                    candidate,
                    raw.path,
                    final.path,
                    download_log.path,
                    convert_log.path,
                    client_info,
                    cancel_check,
                )
            finally:
                self._store_logs(scope, client_info)

    def _download_convert_store(
        self,
        request,
        candidate,
        raw_path,
        final_path,
        download_log,
        convert_log,
        client_info,
        cancel_check,
    ):
        tag = client_tag(client_info)
        command = [*self._config.audio_command, candidate.url, str(raw_path), self._config.audio_format]
        download = self._runner(
            command,
            download_log,
            timeout=self._config.download_timeout_seconds,
            cancel_check=cancel_check,
        )
        if download.outcome is ProcessOutcome.CANCELLED:
            logger.info("[%s] Download of %s cancelled", tag, candidate.external_id)
            return AcquisitionResult.failed(FailureReason.CANCELLED, candidate)
        if download.outcome is ProcessOutcome.TIMED_OUT_AND_KILLED:
            logger.warning("[%s] Forcibly destroyed the download process for %s", tag, candidate.external_id)

        if not final_path.exists():
            logger.info("[%s] %s does not exist, attempting to convert with ffmpeg", tag, final_path)

            if not raw_path.exists():
                logger.error("[%s] %s does not exist, download produced nothing", tag, raw_path)
                return AcquisitionResult.failed(FailureReason.DOWNLOAD_PRODUCED_NOTHING, candidate)

            if not self._converter.installed:
                logger.error("[%s] ffmpeg not installed, nothing we can do", tag)
                return AcquisitionResult.failed(FailureReason.CONVERTER_UNAVAILABLE, candidate)

            conversion = self._converter.convert(raw_path, final_path, convert_log, cancel_check=cancel_check)
            if conversion.outcome is ProcessOutcome.CANCELLED:
                logger.info("[%s] Conversion of %s cancelled", tag, raw_path)
                return AcquisitionResult.failed(FailureReason.CANCELLED, candidate)
            if not final_path.exists():
                logger.error(
                    "[%s] Failed to convert %s to %s (outcome=%s rc=%s)",
                    tag,
                    raw_path,
                    final_path,
                    conversion.outcome.value,
                    conversion.return_code,
                )
                return AcquisitionResult.failed(FailureReason.CONVERSION_PRODUCED_NOTHING, candidate)

        key = self.audio_key(request)
        try:
            # The local copy goes whether or not the store call raised.
            use_then_delete(
                final_path,
                lambda path: self._storage.store(
                    key,
                    StorageScope.AUDIO,
                    path,
                    mime_type_for_format(self._config.audio_format),
                    client_info,
                ),
            )
        except Exception:
            logger.exception("[%s] Failed to store %s", tag, key)
            return AcquisitionResult.failed(FailureReason.STORE_FAILED, candidate)

        asset = self._storage.provide(key, StorageScope.AUDIO, client_info)
        if asset is None:
            logger.error("[%s] Stored %s but storage cannot provide it", tag, key)
            return AcquisitionResult.failed(FailureReason.STORE_FAILED, candidate)
        logger.info("[%s] Stored audio for %s as %s", tag, request.id, key)
        return AcquisitionResult.succeeded(asset, candidate)

    def _store_logs(self, scope: ArtifactScope, client_info: ClientInfo | None) -> None:
        tag = client_tag(client_info)
        for artifact in scope.existing(LOG_KINDS):
            try:
                use_then_delete(
                    artifact.path,
                    lambda path: self._storage.store(
                        path.name,
                        StorageScope.LOG,
                        path,
                        LOG_MIME_TYPE,
                        client_info,
                    ),
                )
            except Exception:
                logger.exception("[%s] Failed to store log %s", tag, artifact.path.name)
