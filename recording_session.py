"""Recording lifecycle: one capture at a time, saved as a WAV file on stop."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from queue import Queue
from typing import Callable, Optional

from codec import encode_wav
from errors import AudioRecordingError
from interfaces import CaptureItem, Recorder
from models import DEFAULT_AUDIO_CONFIG, AudioConfig, CaptureFailure, SessionState

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]


def recording_path(audio_dir: Path, clock: Callable[[], float] = time.time) -> Path:
    """Timestamped destination for a new recording."""
    return Path(audio_dir) / f"recording-{int(clock() * 1000)}.wav"


class RecordingSession:
    """Owns the capture state machine and the raw byte accumulator.

    A consumer thread drains the recorder queue into the accumulator while
    recording. ``stop`` waits for the recorder's end-of-stream sentinel before
    encoding, so the last chunk is never lost.
    """

    def __init__(
        self,
        recorder: Recorder,
        audio_dir: Path,
        config: AudioConfig = DEFAULT_AUDIO_CONFIG,
        drain_timeout_s: float = 5.0,
        on_state_change: Optional[StateCallback] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._recorder = recorder
        self._audio_dir = Path(audio_dir)
        self._config = config
        self._drain_timeout_s = drain_timeout_s
        self._on_state_change = on_state_change
        self._clock = clock

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._file_path: Optional[Path] = None
        self._buffer = bytearray()
        self._consumer: Optional[threading.Thread] = None
        self._generation = 0
        self._stop_requested = False
        self._last_error: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == SessionState.RECORDING

    @property
    def file_path(self) -> Optional[Path]:
        return self._file_path

    @property
    def last_error(self) -> Optional[str]:
        """Message of the most recent capture failure, cleared on start."""
        return self._last_error

    @property
    def config(self) -> AudioConfig:
        return self._config

    def start(self) -> Path:
        with self._lock:
            if self._state == SessionState.RECORDING:
                logger.info(f"Already recording to {self._file_path}, no new session started")
                return self._file_path

            self._generation += 1
            generation = self._generation
            path = recording_path(self._audio_dir, self._clock)
            audio_queue: Queue[CaptureItem] = Queue()

            self._buffer = bytearray()
            self._last_error = None
            self._stop_requested = False
            self._file_path = path
            self._consumer = threading.Thread(
                target=self._consume,
                args=(generation, audio_queue),
                daemon=True,
                name="RecordingConsumer",
            )
            self._consumer.start()

            try:
                self._recorder.start(audio_queue)
            except Exception as exc:
                self._generation += 1
                self._file_path = None
                self._consumer = None
                audio_queue.put(None)
                raise AudioRecordingError(f"Failed to start recording: {exc}") from exc

            self._transition(SessionState.RECORDING)
            logger.info(f"Recording started: {path}")
            return path

    def stop(self) -> Optional[Path]:
        """Stop capture and write the WAV file.

        Returns the file path, or None when nothing was recording or no audio
        was captured.
        """
        with self._lock:
            if self._state != SessionState.RECORDING or self._stop_requested:
                logger.info("Not currently recording")
                return None
            self._stop_requested = True
            generation = self._generation
            consumer = self._consumer
            path = self._file_path

        logger.info("Stopping recording...")
        self._safe_stop_recorder()
        if consumer is not None:
            consumer.join(timeout=self._drain_timeout_s)

        with self._lock:
            if generation != self._generation:
                # capture failed while draining; state is already reset
                return None
            if consumer is not None and consumer.is_alive():
                self._reset()
                raise AudioRecordingError(
                    f"Capture stream did not finish within {self._drain_timeout_s}s"
                )
            pcm = bytes(self._buffer)

        try:
            logger.info(f"Collected {len(pcm)} bytes of PCM data")
            container = encode_wav(pcm, self._config)
            if container is None:
                logger.warning("No audio data collected, nothing saved")
                return None
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(container)
            logger.info(f"Recording saved to {path} ({len(container) / 1024:.2f} KB)")
            return path
        except Exception as exc:
            raise AudioRecordingError(f"Failed to save recording to {path}: {exc}") from exc
        finally:
            with self._lock:
                self._reset()

    def cancel(self) -> None:
        """Abort an active capture without writing a file."""
        with self._lock:
            if self._state != SessionState.RECORDING:
                return
            self._reset()
        self._safe_stop_recorder()
        logger.info("Recording cancelled")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _consume(self, generation: int, audio_queue: Queue[CaptureItem]) -> None:
        while True:
            item = audio_queue.get()
            if item is None:
                return
            with self._lock:
                if generation != self._generation:
                    continue
                if isinstance(item, CaptureFailure):
                    self._handle_failure(item)
                    continue
                self._buffer.extend(item.pcm16_bytes)

    def _handle_failure(self, failure: CaptureFailure) -> None:
        logger.error(f"Capture stream error, resetting session: {failure.message}")
        self._last_error = failure.message
        self._reset()
        self._safe_stop_recorder()

    def _reset(self) -> None:
        self._generation += 1
        self._buffer = bytearray()
        self._file_path = None
        self._consumer = None
        self._stop_requested = False
        self._transition(SessionState.IDLE)

    def _safe_stop_recorder(self) -> None:
        try:
            self._recorder.stop()
        except Exception as exc:
            logger.warning(f"Recorder stop failed: {exc}")

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
