"""Shared fakes and fixtures."""

from __future__ import annotations

import time
from pathlib import Path
from queue import Queue
from typing import Callable

import pytest

from interfaces import CaptureItem
from models import AudioFrame, CaptureFailure, TranscriptionResult
from recording_session import RecordingSession


class FakeRecorder:
    """Recorder whose stream is driven by the test."""

    def __init__(self, send_sentinel_on_stop: bool = True) -> None:
        self.send_sentinel_on_stop = send_sentinel_on_stop
        self.start_calls = 0
        self.stop_calls = 0
        self.queue: Queue[CaptureItem] | None = None

    def start(self, audio_queue: Queue[CaptureItem]) -> None:
        self.start_calls += 1
        self.queue = audio_queue

    def stop(self) -> None:
        self.stop_calls += 1
        if self.send_sentinel_on_stop and self.queue is not None:
            self.queue.put(None)

    def push(self, pcm: bytes) -> None:
        assert self.queue is not None
        self.queue.put(AudioFrame(pcm16_bytes=pcm))

    def fail(self, message: str) -> None:
        assert self.queue is not None
        self.queue.put(CaptureFailure(message))


class FailingRecorder(FakeRecorder):
    def start(self, audio_queue: Queue[CaptureItem]) -> None:
        raise OSError("no input device")


class FakeTranscriber:
    def __init__(self, text: str = "hello world", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[Path] = []

    def initialize(self) -> None:
        pass

    def transcribe(self, audio_file_path) -> TranscriptionResult:  # noqa: ANN001
        self.calls.append(Path(audio_file_path))
        if self.error is not None:
            raise self.error
        return TranscriptionResult(text=self.text, language="en", duration_seconds=0.01)

    def is_ready(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "fake"


def wait_until(predicate: Callable[[], bool], *, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def fake_recorder() -> FakeRecorder:
    return FakeRecorder()


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    return tmp_path / "audio"


@pytest.fixture
def session(fake_recorder: FakeRecorder, audio_dir: Path) -> RecordingSession:
    return RecordingSession(
        recorder=fake_recorder,
        audio_dir=audio_dir,
        drain_timeout_s=1.0,
        clock=lambda: 1700000000.5,
    )
