"""Protocol interfaces used by RecordingSession and SessionController."""

from __future__ import annotations

from pathlib import Path
from queue import Queue
from typing import Optional, Protocol, Union

from models import AudioFrame, CaptureFailure, TranscriptionResult

CaptureItem = Union[AudioFrame, CaptureFailure, None]


class Recorder(Protocol):
    def start(self, audio_queue: Queue[CaptureItem]) -> None: ...

    def stop(self) -> None: ...


class Transcriber(Protocol):
    def initialize(self) -> None: ...

    def transcribe(self, audio_file_path: Union[str, Path]) -> TranscriptionResult: ...

    def is_ready(self) -> bool: ...

    def get_provider_name(self) -> str: ...


class ConfigStore(Protocol):
    def get_api_key(self, provider: str) -> str: ...

    def set_api_key(self, provider: str, key: str) -> None: ...

    def get_provider(self) -> Optional[str]: ...

    def set_provider(self, provider: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...
