"""Hotkey-driven pipeline: toggle recording, then transcribe the saved file."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from errors import ASR_PROTOCOL_ERROR, CAPTURE_FAILED, AudioError, WhisperAgentError
from interfaces import Transcriber
from models import SessionState, TranscriptionResult
from recording_session import RecordingSession

logger = logging.getLogger(__name__)

TranscriptCallback = Callable[[TranscriptionResult, Path], None]
ErrorCallback = Callable[[str, str], None]


class SessionController:
    """Owns one recording session and the transcriber chosen at startup.

    Each ``toggle`` alternates between starting and stopping. Failures are
    reported through ``on_error`` and never raised past this boundary.
    """

    def __init__(
        self,
        session: RecordingSession,
        transcriber: Transcriber,
        on_transcript: Optional[TranscriptCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._session = session
        self._transcriber = transcriber
        self._on_transcript = on_transcript
        self._on_error = on_error
        self._lock = threading.Lock()
        self._armed = False

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def transcriber(self) -> Transcriber:
        return self._transcriber

    def toggle(self) -> Optional[TranscriptionResult]:
        with self._lock:
            if not self._armed:
                self._start_locked()
                return None
            path = self._stop_locked()
        if path is None:
            return None
        return self.transcribe_file(path)

    def start_recording(self) -> Optional[Path]:
        with self._lock:
            return self._start_locked()

    def stop_and_transcribe(self) -> Optional[TranscriptionResult]:
        with self._lock:
            path = self._stop_locked()
        if path is None:
            return None
        return self.transcribe_file(path)

    def transcribe_file(self, path: Path) -> Optional[TranscriptionResult]:
        try:
            result = self._transcriber.transcribe(path)
        except WhisperAgentError as exc:
            self._emit_error(exc.code, str(exc))
            return None
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected transcription failure")
            self._emit_error(ASR_PROTOCOL_ERROR, str(exc))
            return None

        logger.info(f"Transcript from {self._transcriber.get_provider_name()}: {result.text!r}")
        if self._on_transcript:
            self._on_transcript(result, path)
        return result

    def shutdown(self) -> None:
        with self._lock:
            self._armed = False
            self._session.cancel()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _start_locked(self) -> Optional[Path]:
        try:
            path = self._session.start()
        except AudioError as exc:
            self._emit_error(exc.code, str(exc))
            return None
        self._armed = True
        return path

    def _stop_locked(self) -> Optional[Path]:
        self._armed = False
        try:
            path = self._session.stop()
        except AudioError as exc:
            self._emit_error(exc.code, str(exc))
            return None
        if path is None:
            if self._session.last_error:
                self._emit_error(CAPTURE_FAILED, self._session.last_error)
            else:
                logger.info("Nothing was recorded")
        return path

    def _emit_error(self, code: str, message: str) -> None:
        logger.error(f"{code}: {message}")
        if self._on_error:
            self._on_error(code, message)
