"""Agent configuration: JSON config store plus environment settings."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Mapping, Optional, Union

from dotenv import load_dotenv

from interfaces import ConfigStore
from models import Provider

DEFAULT_HOTKEY = "<ctrl>+<shift>+<space>"
DEFAULT_PROVIDER = Provider.LOCAL.value


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "whisper_agent" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self, provider: str) -> str:
        keys = self._read_all().get("api_keys", {})
        if not isinstance(keys, dict):
            return ""
        return str(keys.get(provider, ""))

    def set_api_key(self, provider: str, key: str) -> None:
        data = self._read_all()
        keys = data.get("api_keys")
        if not isinstance(keys, dict):
            keys = {}
        keys[provider] = key
        data["api_keys"] = keys
        self._write_all(data)

    def get_provider(self) -> Optional[str]:
        value = self._read_all().get("provider")
        return str(value) if value else None

    def set_provider(self, provider: str) -> None:
        data = self._read_all()
        data["provider"] = provider
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def load_env_file(env_path: Union[str, Path, None], override: bool = False) -> bool:
    """Load a ``.env`` file into the process environment.

    Nothing is loaded implicitly; returns False when no path was given or the
    file does not exist.
    """
    if not env_path or not Path(env_path).is_file():
        return False
    return load_dotenv(dotenv_path=env_path, override=override)


def _split_list(value: str) -> FrozenSet[str]:
    return frozenset(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class AgentSettings:
    provider: str = DEFAULT_PROVIDER
    language: str = "auto"
    local_model: str = "base"
    groq_api_key: str = ""
    groq_model: str = "whisper-large-v3"
    openai_api_key: str = ""
    openai_model: str = "whisper-1"
    disabled_providers: FrozenSet[str] = field(default_factory=frozenset)
    data_dir: Path = Path("data")
    models_dir: Path = Path("models")
    hotkey: str = DEFAULT_HOTKEY

    @property
    def audio_dir(self) -> Path:
        return self.data_dir / "audio"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        store: Optional[ConfigStore] = None,
    ) -> "AgentSettings":
        """Resolve settings: environment first, then the config store, then defaults."""
        env = os.environ if environ is None else environ

        def pick(key: str, stored: Optional[str], default: str) -> str:
            value = env.get(key)
            if value:
                return value
            return stored or default

        return cls(
            provider=pick("WHISPER_PROVIDER", store.get_provider() if store else None, DEFAULT_PROVIDER).lower(),
            language=pick("WHISPER_LANGUAGE", None, "auto"),
            local_model=pick("WHISPER_MODEL", None, "base"),
            groq_api_key=pick("GROQ_API_KEY", store.get_api_key(Provider.GROQ.value) if store else None, ""),
            groq_model=pick("GROQ_MODEL", None, "whisper-large-v3"),
            openai_api_key=pick("OPENAI_API_KEY", store.get_api_key(Provider.OPENAI.value) if store else None, ""),
            openai_model=pick("OPENAI_MODEL", None, "whisper-1"),
            disabled_providers=_split_list(env.get("WHISPER_DISABLED_PROVIDERS", "")),
            data_dir=Path(pick("WHISPER_AGENT_DATA_DIR", None, "data")),
            models_dir=Path(pick("WHISPER_AGENT_MODELS_DIR", None, "models")),
            hotkey=store.get_hotkey() if store else DEFAULT_HOTKEY,
        )
