"""Microphone capture sources.

Both recorders push ``AudioFrame`` items into the queue handed to ``start``,
a ``CaptureFailure`` if the stream breaks, and a ``None`` sentinel once the
stream has fully drained.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
import threading
import time
from queue import Queue
from typing import IO, Any, List, Optional

import numpy as np

from errors import AudioDeviceError
from interfaces import CaptureItem
from models import DEFAULT_AUDIO_CONFIG, AudioConfig, AudioFrame, CaptureFailure

try:
    import sounddevice as sd
except (ImportError, OSError):  # pragma: no cover - PortAudio missing
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

SILENCE_THRESHOLD = 0.5
SILENCE_DURATION_S = 1.5


class SoxRecorder:
    """Captures raw PCM from the default input device through ``sox``."""

    def __init__(
        self,
        config: AudioConfig = DEFAULT_AUDIO_CONFIG,
        threshold: float = SILENCE_THRESHOLD,
        silence_s: float = SILENCE_DURATION_S,
        end_on_silence: bool = False,
        program: str = "sox",
        chunk_bytes: int = 4096,
        stop_timeout_s: float = 5.0,
    ) -> None:
        self.config = config
        self.threshold = threshold
        self.silence_s = silence_s
        self.end_on_silence = end_on_silence
        self.program = program
        self.chunk_bytes = chunk_bytes
        self.stop_timeout_s = stop_timeout_s
        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None
        self._stopping = False
        self._lock = threading.Lock()

    def build_command(self) -> List[str]:
        cmd = [
            self.program,
            "--default-device",
            "--no-show-progress",
            "--rate", str(self.config.sample_rate),
            "--channels", str(self.config.channels),
            "--encoding", self.config.encoding,
            "--bits", str(self.config.bits),
            "--type", "raw",
            "-",
        ]
        if self.end_on_silence:
            level = f"{self.threshold}%"
            cmd += ["silence", "1", "0.1", level, "1", str(self.silence_s), level]
        return cmd

    def start(self, audio_queue: Queue[CaptureItem]) -> None:
        # a stopped process may still be draining; wait for its reader first
        with self._lock:
            previous = self._reader if self._stopping else None
        if previous is not None:
            previous.join(timeout=self.stop_timeout_s)

        with self._lock:
            if self._process is not None:
                if self._stopping:
                    raise AudioDeviceError(f"Previous '{self.program}' process did not exit")
                return
            cmd = self.build_command()
            logger.debug(f"Spawning capture process: {' '.join(cmd)}")
            stderr_log = tempfile.TemporaryFile()
            try:
                process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=stderr_log)
            except FileNotFoundError as exc:
                stderr_log.close()
                raise AudioDeviceError(
                    f"'{self.program}' was not found on PATH; install SoX to record audio"
                ) from exc
            except OSError as exc:
                stderr_log.close()
                raise AudioDeviceError(f"Could not start '{self.program}': {exc}") from exc
            self._process = process
            self._stopping = False
            self._reader = threading.Thread(
                target=self._read_stream,
                args=(process, audio_queue, stderr_log),
                daemon=True,
                name="SoxReader",
            )
            self._reader.start()

    def stop(self) -> None:
        with self._lock:
            process = self._process
            if process is None:
                return
            self._stopping = True
            if process.poll() is None:
                process.terminate()

    def _read_stream(
        self,
        process: subprocess.Popen,
        audio_queue: Queue[CaptureItem],
        stderr_log: IO[bytes],
    ) -> None:
        failure: Optional[str] = None
        try:
            while True:
                chunk = process.stdout.read1(self.chunk_bytes)
                if not chunk:
                    break
                audio_queue.put(
                    AudioFrame(
                        pcm16_bytes=chunk,
                        sample_rate=self.config.sample_rate,
                        channels=self.config.channels,
                        timestamp_ms=int(time.time() * 1000),
                    )
                )
        except (OSError, ValueError) as exc:
            failure = f"capture stream read failed: {exc}"

        returncode = process.wait()
        with self._lock:
            stopping = self._stopping
            self._process = None

        with stderr_log:
            if failure is None and returncode != 0 and not stopping:
                stderr_log.seek(0)
                stderr = stderr_log.read().decode("utf-8", errors="replace").strip()
                failure = f"{self.program} exited with code {returncode}: {stderr}"
        if failure is not None and not stopping:
            logger.error(failure)
            audio_queue.put(CaptureFailure(failure))
        audio_queue.put(None)


class SoundDeviceRecorder:
    """In-process capture through a PortAudio input stream.

    PortAudio calls ``finished_callback`` whenever the stream ends. If that
    happens without ``stop`` (device unplugged, callback aborted) the queue
    gets a ``CaptureFailure`` followed by the sentinel.
    """

    def __init__(
        self,
        config: AudioConfig = DEFAULT_AUDIO_CONFIG,
        chunk_ms: int = 100,
    ) -> None:
        self.config = config
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._running = False
        self._failure: Optional[str] = None
        self._lock = threading.Lock()
        self._audio_queue: Optional[Queue[CaptureItem]] = None

    def start(self, audio_queue: Queue[CaptureItem]) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise AudioDeviceError("sounddevice is not installed or PortAudio is missing")
            stale, self._stream = self._stream, None
        if stale is not None:
            stale.close()

        with self._lock:
            self._audio_queue = audio_queue
            self._failure = None
            blocksize = int(self.config.sample_rate * (self.chunk_ms / 1000.0))
            # set before the stream starts so the first callback is not dropped
            self._running = True
            try:
                self._stream = sd.InputStream(
                    samplerate=self.config.sample_rate,
                    channels=self.config.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                    finished_callback=self._on_finished,
                )
                self._stream.start()
            except Exception as exc:
                self._running = False
                self._stream = None
                raise AudioDeviceError(f"Could not open input stream: {exc}") from exc

    def stop(self) -> None:
        with self._lock:
            stream, self._stream = self._stream, None
            was_running = self._running
            self._running = False
        # stream.stop() waits for the callbacks, which take the lock
        if stream is not None:
            stream.stop()
            stream.close()
        if was_running:
            self._emit(None)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or self._audio_queue is None:
            return
        if status:
            logger.warning(f"Input stream status: {status}")
        try:
            payload = np.asarray(indata, dtype=np.int16).tobytes()
        except (TypeError, ValueError) as exc:
            self._failure = f"input callback failed: {exc}"
            raise sd.CallbackAbort from exc
        self._emit(
            AudioFrame(
                pcm16_bytes=payload,
                sample_rate=self.config.sample_rate,
                channels=self.config.channels,
                timestamp_ms=int(time.time() * 1000),
            )
        )

    def _on_finished(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            message = self._failure or "input stream finished unexpectedly"
        logger.error(message)
        self._emit(CaptureFailure(message))
        self._emit(None)

    def _emit(self, item: CaptureItem) -> None:
        if self._audio_queue is not None:
            self._audio_queue.put(item)
