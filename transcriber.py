"""Speech-to-text backends behind a single transcriber contract.

Every variant shares the same lifecycle: ``initialize`` verifies the backend
is usable (model files on disk, or an API key) and flips the readiness flag
once; ``transcribe`` initializes on demand, checks the audio file exists,
then makes exactly one backend call and times it.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import openai
from openai import OpenAI

from errors import (
    ASR_PROTOCOL_ERROR,
    AUTH_FAILED,
    NETWORK_ERROR,
    AudioFileNotFoundError,
    ConfigurationError,
    TranscriptionFailedError,
    WhisperAgentError,
)
from models import Provider, TranscriptionResult

logger = logging.getLogger(__name__)

AUTO_LANGUAGE = "auto"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def to_transcription_error(exc: Exception) -> TranscriptionFailedError:
    """Map an SDK/network exception to a classified transcription error."""
    message = str(exc)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return TranscriptionFailedError(message, code=AUTH_FAILED, retryable=False)
    if isinstance(exc, (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)):
        return TranscriptionFailedError(message, code=NETWORK_ERROR, retryable=True)

    low = message.lower()
    if "401" in low or "auth" in low or "api key" in low:
        return TranscriptionFailedError(message, code=AUTH_FAILED, retryable=False)
    if "timeout" in low or "network" in low or "connection" in low:
        return TranscriptionFailedError(message, code=NETWORK_ERROR, retryable=True)
    return TranscriptionFailedError(message, code=ASR_PROTOCOL_ERROR, retryable=False)


class BaseTranscriber:
    provider_name = ""

    def __init__(self, language: Optional[str] = AUTO_LANGUAGE) -> None:
        self.language = language
        self._initialized = False
        self._init_lock = threading.Lock()

    def get_provider_name(self) -> str:
        return self.provider_name

    def is_ready(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        with self._init_lock:
            if self._initialized:
                return
            logger.info(f"Initializing {self.provider_name} transcriber...")
            try:
                self._prepare()
            except ConfigurationError as exc:
                logger.error(f"[{self.provider_name}] {exc}")
                raise
            self._initialized = True
            logger.info(f"{self.provider_name} transcriber initialized")

    def transcribe(self, audio_file_path: Union[str, Path]) -> TranscriptionResult:
        if not self._initialized:
            self.initialize()

        path = Path(audio_file_path)
        if not path.is_file():
            raise AudioFileNotFoundError(path)

        logger.info(f"[{self.provider_name}] Transcribing: {path}")
        start = time.perf_counter()
        try:
            text, language = self._run(path)
        except WhisperAgentError:
            raise
        except Exception as exc:
            logger.error(f"[{self.provider_name}] Transcription failed: {exc}")
            raise to_transcription_error(exc) from exc
        duration = time.perf_counter() - start

        text = (text or "").strip()
        logger.info(f"[{self.provider_name}] Transcription completed in {duration:.2f}s")
        logger.debug(f'[{self.provider_name}] Result: "{text}"')
        return TranscriptionResult(text=text, language=language, duration_seconds=duration)

    def language_option(self) -> Optional[str]:
        """Language to send to the backend; None lets it auto-detect."""
        if not self.language or self.language.lower() == AUTO_LANGUAGE:
            return None
        return self.language

    def _prepare(self) -> None:
        raise NotImplementedError

    def _run(self, path: Path) -> Tuple[str, Optional[str]]:
        raise NotImplementedError


class LocalWhisperTranscriber(BaseTranscriber):
    """On-device Whisper through faster-whisper (CTranslate2 model directory)."""

    provider_name = Provider.LOCAL.value

    def __init__(
        self,
        model_name: str = "base",
        models_dir: Union[str, Path] = "models",
        language: Optional[str] = AUTO_LANGUAGE,
        device: str = "auto",
        compute_type: str = "default",
    ) -> None:
        super().__init__(language=language)
        self.model_name = model_name
        self.model_path = Path(models_dir) / f"faster-whisper-{model_name}"
        self.device = device
        self.compute_type = compute_type
        self._model: Any = None
        self._model_lock = threading.Lock()

    def model_info(self) -> Dict[str, Any]:
        return {
            "name": self.model_name,
            "path": str(self.model_path),
            "exists": self._model_exists(),
        }

    def _model_exists(self) -> bool:
        return (self.model_path / "model.bin").is_file()

    def _prepare(self) -> None:
        logger.info(f"Model path: {self.model_path}")
        if not self._model_exists():
            raise ConfigurationError(
                f"Whisper model not found at: {self.model_path}\n"
                f"Please download the model first, for example:\n"
                f"  huggingface-cli download Systran/faster-whisper-{self.model_name} "
                f"--local-dir {self.model_path}"
            )

    def _load_model(self) -> Any:
        with self._model_lock:
            if self._model is None:
                try:
                    from faster_whisper import WhisperModel
                except ImportError as exc:
                    raise ConfigurationError(
                        "faster-whisper not installed. Install with: pip install faster-whisper"
                    ) from exc
                logger.info(f"Loading Whisper model '{self.model_name}'...")
                self._model = WhisperModel(
                    str(self.model_path),
                    device=self.device,
                    compute_type=self.compute_type,
                )
            return self._model

    def _run(self, path: Path) -> Tuple[str, Optional[str]]:
        model = self._load_model()
        kwargs: Dict[str, Any] = {}
        language = self.language_option()
        if language:
            kwargs["language"] = language

        segments, info = model.transcribe(str(path), **kwargs)
        text = " ".join(s.text.strip() for s in segments if s.text.strip())
        return text, getattr(info, "language", None)


class _RemoteWhisperTranscriber(BaseTranscriber):
    """Whisper behind an OpenAI-compatible ``audio/transcriptions`` endpoint."""

    display_name = ""
    api_key_env = ""
    base_url: Optional[str] = None
    response_format: Optional[str] = None

    def __init__(self, api_key: str, model: str, language: Optional[str] = AUTO_LANGUAGE) -> None:
        super().__init__(language=language)
        self._api_key = api_key
        self.model = model
        self._client: Optional[OpenAI] = None

    def _prepare(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                f"{self.display_name} API key not found. "
                f"Please set {self.api_key_env} environment variable."
            )
        self._client = OpenAI(api_key=self._api_key, base_url=self.base_url)

    def _run(self, path: Path) -> Tuple[str, Optional[str]]:
        kwargs: Dict[str, Any] = {"model": self.model}
        language = self.language_option()
        if language:
            kwargs["language"] = language
        if self.response_format:
            kwargs["response_format"] = self.response_format

        with path.open("rb") as audio_file:
            transcription = self._client.audio.transcriptions.create(file=audio_file, **kwargs)
        return transcription.text, getattr(transcription, "language", None)


class GroqWhisperTranscriber(_RemoteWhisperTranscriber):
    provider_name = Provider.GROQ.value
    display_name = "Groq"
    api_key_env = "GROQ_API_KEY"
    base_url = GROQ_BASE_URL
    response_format = "json"

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-large-v3",
        language: Optional[str] = AUTO_LANGUAGE,
    ) -> None:
        super().__init__(api_key=api_key, model=model, language=language)


class OpenAIWhisperTranscriber(_RemoteWhisperTranscriber):
    provider_name = Provider.OPENAI.value
    display_name = "OpenAI"
    api_key_env = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        language: Optional[str] = AUTO_LANGUAGE,
    ) -> None:
        super().__init__(api_key=api_key, model=model, language=language)
