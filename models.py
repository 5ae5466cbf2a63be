"""Core data models for the agent."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"


class Provider(str, Enum):
    LOCAL = "local"
    GROQ = "groq"
    OPENAI = "openai"


@dataclass(frozen=True)
class AudioConfig:
    """Capture format expected by every transcription backend."""

    sample_rate: int = 16000
    channels: int = 1
    encoding: str = "signed-integer"
    bits: int = 16

    @property
    def sample_width(self) -> int:
        return self.bits // 8


DEFAULT_AUDIO_CONFIG = AudioConfig()


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class CaptureFailure:
    """Queued by a recorder when its stream breaks."""

    message: str


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    language: Optional[str] = None
    duration_seconds: Optional[float] = None
