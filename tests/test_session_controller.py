from __future__ import annotations

from pathlib import Path

import numpy as np

from conftest import FailingRecorder, FakeRecorder, FakeTranscriber, wait_until
from errors import AUDIO_FILE_NOT_FOUND, CAPTURE_FAILED, CONFIG_MISSING, AudioFileNotFoundError, ConfigurationError
from models import SessionState, TranscriptionResult
from recording_session import RecordingSession
from session_controller import SessionController


def _pcm(values) -> bytes:  # noqa: ANN001
    return np.asarray(values, dtype="<i2").tobytes()


class _Collector:
    def __init__(self) -> None:
        self.transcripts: list[tuple[TranscriptionResult, Path]] = []
        self.errors: list[tuple[str, str]] = []

    def on_transcript(self, result: TranscriptionResult, path: Path) -> None:
        self.transcripts.append((result, path))

    def on_error(self, code: str, message: str) -> None:
        self.errors.append((code, message))


def _controller(session: RecordingSession, transcriber: FakeTranscriber, collector: _Collector) -> SessionController:
    return SessionController(
        session=session,
        transcriber=transcriber,
        on_transcript=collector.on_transcript,
        on_error=collector.on_error,
    )


def test_happy_path_toggle_records_and_transcribes(
    session: RecordingSession, fake_recorder: FakeRecorder
) -> None:
    transcriber = FakeTranscriber(text="hello")
    collector = _Collector()
    controller = _controller(session, transcriber, collector)

    assert controller.toggle() is None
    assert controller.state == SessionState.RECORDING
    fake_recorder.push(_pcm([1, 2, 3]))

    result = controller.toggle()

    assert result is not None and result.text == "hello"
    assert controller.state == SessionState.IDLE
    assert len(transcriber.calls) == 1
    assert transcriber.calls[0].exists()
    assert collector.transcripts == [(result, transcriber.calls[0])]
    assert collector.errors == []


def test_empty_recording_skips_transcription(session: RecordingSession) -> None:
    transcriber = FakeTranscriber()
    collector = _Collector()
    controller = _controller(session, transcriber, collector)

    controller.toggle()
    assert controller.toggle() is None

    assert transcriber.calls == []
    assert collector.errors == []


def test_transcriber_configuration_error_is_reported(
    session: RecordingSession, fake_recorder: FakeRecorder
) -> None:
    transcriber = FakeTranscriber(error=ConfigurationError("GROQ_API_KEY missing"))
    collector = _Collector()
    controller = _controller(session, transcriber, collector)

    controller.start_recording()
    fake_recorder.push(_pcm([7]))
    assert controller.stop_and_transcribe() is None

    assert collector.errors == [(CONFIG_MISSING, "GROQ_API_KEY missing")]
    assert collector.transcripts == []


def test_missing_file_is_reported(tmp_path: Path, session: RecordingSession) -> None:
    missing = tmp_path / "gone.wav"
    collector = _Collector()
    controller = _controller(session, FakeTranscriber(error=AudioFileNotFoundError(missing)), collector)

    assert controller.transcribe_file(missing) is None
    assert collector.errors[0][0] == AUDIO_FILE_NOT_FOUND


def test_capture_failure_is_reported_on_next_toggle(
    session: RecordingSession, fake_recorder: FakeRecorder
) -> None:
    transcriber = FakeTranscriber()
    collector = _Collector()
    controller = _controller(session, transcriber, collector)

    controller.toggle()
    fake_recorder.fail("device unplugged")
    assert wait_until(lambda: controller.state == SessionState.IDLE)

    assert controller.toggle() is None
    assert collector.errors == [(CAPTURE_FAILED, "device unplugged")]
    assert transcriber.calls == []

    controller.toggle()
    assert controller.state == SessionState.RECORDING


def test_start_failure_is_reported_and_next_toggle_retries(audio_dir: Path) -> None:
    recorder = FailingRecorder()
    collector = _Collector()
    controller = _controller(RecordingSession(recorder=recorder, audio_dir=audio_dir), FakeTranscriber(), collector)

    controller.toggle()
    controller.toggle()

    assert controller.state == SessionState.IDLE
    assert [code for code, _ in collector.errors] == [CAPTURE_FAILED, CAPTURE_FAILED]


def test_shutdown_cancels_active_recording(
    session: RecordingSession, fake_recorder: FakeRecorder, audio_dir: Path
) -> None:
    transcriber = FakeTranscriber()
    controller = _controller(session, transcriber, _Collector())

    controller.toggle()
    fake_recorder.push(_pcm([1]))
    controller.shutdown()

    assert controller.state == SessionState.IDLE
    assert transcriber.calls == []
    assert not audio_dir.exists()

    controller.toggle()
    assert controller.state == SessionState.RECORDING
