"""Shared error codes, user-facing messages and exception types."""

from __future__ import annotations

CONFIG_MISSING = "CONFIG_MISSING"
AUDIO_FILE_NOT_FOUND = "AUDIO_FILE_NOT_FOUND"
CAPTURE_FAILED = "CAPTURE_FAILED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
ASR_PROTOCOL_ERROR = "ASR_PROTOCOL_ERROR"

ERROR_MESSAGES = {
    CONFIG_MISSING: "Transcriber is not configured, check model files and API keys.",
    AUDIO_FILE_NOT_FOUND: "Recorded audio file is missing.",
    CAPTURE_FAILED: "Microphone capture failed, recording was reset.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
    ASR_PROTOCOL_ERROR: "Transcription backend returned an error.",
}


class WhisperAgentError(Exception):
    """Base exception for all agent errors."""

    code = ASR_PROTOCOL_ERROR


class ConfigurationError(WhisperAgentError):
    """A model file or credential required by a backend is missing."""

    code = CONFIG_MISSING


class AudioError(WhisperAgentError):
    code = CAPTURE_FAILED


class AudioDeviceError(AudioError):
    """The capture tool or input device could not be opened."""


class AudioRecordingError(AudioError):
    """Starting, draining or saving a recording failed."""


class TranscriptionError(WhisperAgentError):
    code = ASR_PROTOCOL_ERROR


class AudioFileNotFoundError(TranscriptionError):
    code = AUDIO_FILE_NOT_FOUND

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"Audio file not found: {path}")


class TranscriptionFailedError(TranscriptionError):
    """The backend call failed; carries a classified code."""

    def __init__(self, message: str, code: str = ASR_PROTOCOL_ERROR, retryable: bool = False) -> None:
        self.code = code
        self.retryable = retryable
        super().__init__(message)
