"""Selects and builds the process-wide transcriber from settings.

Selection happens once at startup; the active transcriber is not swapped
while the agent runs.
"""

from __future__ import annotations

import logging
from typing import Optional

from config import AgentSettings
from errors import ConfigurationError
from models import Provider
from transcriber import (
    BaseTranscriber,
    GroqWhisperTranscriber,
    LocalWhisperTranscriber,
    OpenAIWhisperTranscriber,
)

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER = Provider.GROQ


def create_transcriber(settings: AgentSettings, provider: Optional[str] = None) -> BaseTranscriber:
    requested = (provider or settings.provider or "").strip().lower()
    logger.info(f"Creating transcriber: {requested or '<unset>'}")

    selected = _resolve(requested, settings)
    if selected is Provider.LOCAL:
        return LocalWhisperTranscriber(
            model_name=settings.local_model,
            models_dir=settings.models_dir,
            language=settings.language,
        )
    if selected is Provider.GROQ:
        return GroqWhisperTranscriber(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            language=settings.language,
        )
    return OpenAIWhisperTranscriber(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        language=settings.language,
    )


def _resolve(requested: str, settings: AgentSettings) -> Provider:
    try:
        candidate = Provider(requested)
    except ValueError:
        logger.warning(f"Unknown provider: {requested!r}, falling back to {FALLBACK_PROVIDER.value}")
        candidate = FALLBACK_PROVIDER
    else:
        if candidate.value in settings.disabled_providers:
            logger.warning(
                f"Provider {candidate.value} is disabled, falling back to {FALLBACK_PROVIDER.value}"
            )
            candidate = FALLBACK_PROVIDER

    if candidate.value in settings.disabled_providers:
        raise ConfigurationError(
            f"Fallback provider {candidate.value} is disabled too; "
            f"enable a provider in WHISPER_DISABLED_PROVIDERS"
        )
    return candidate
