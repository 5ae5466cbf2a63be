from __future__ import annotations

import os
from pathlib import Path

from config import DEFAULT_HOTKEY, AgentSettings, JsonConfigStore, load_env_file


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key("groq") == ""
    assert store.get_provider() is None
    assert store.get_hotkey() == DEFAULT_HOTKEY

    store.set_api_key("groq", "gsk-abc")
    store.set_provider("groq")
    store.set_hotkey("<alt>+r")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key("groq") == "gsk-abc"
    assert reloaded.get_api_key("openai") == ""
    assert reloaded.get_provider() == "groq"
    assert reloaded.get_hotkey() == "<alt>+r"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_key("groq") == ""
    assert store.get_hotkey() == DEFAULT_HOTKEY


def test_settings_defaults() -> None:
    settings = AgentSettings.from_env(environ={})

    assert settings.provider == "local"
    assert settings.language == "auto"
    assert settings.local_model == "base"
    assert settings.groq_model == "whisper-large-v3"
    assert settings.openai_model == "whisper-1"
    assert settings.disabled_providers == frozenset()
    assert settings.audio_dir == Path("data") / "audio"


def test_settings_read_environment() -> None:
    settings = AgentSettings.from_env(
        environ={
            "WHISPER_PROVIDER": "OpenAI",
            "WHISPER_LANGUAGE": "ja",
            "OPENAI_API_KEY": "sk-env",
            "WHISPER_DISABLED_PROVIDERS": " local, Groq ,",
            "WHISPER_AGENT_DATA_DIR": "/tmp/agent",
        }
    )

    assert settings.provider == "openai"
    assert settings.language == "ja"
    assert settings.openai_api_key == "sk-env"
    assert settings.disabled_providers == frozenset({"local", "groq"})
    assert settings.audio_dir == Path("/tmp/agent/audio")


def test_environment_wins_over_store(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set_provider("openai")
    store.set_api_key("groq", "gsk-store")
    store.set_hotkey("<alt>+r")

    settings = AgentSettings.from_env(environ={"WHISPER_PROVIDER": "groq"}, store=store)
    assert settings.provider == "groq"
    assert settings.groq_api_key == "gsk-store"
    assert settings.hotkey == "<alt>+r"

    settings = AgentSettings.from_env(environ={"GROQ_API_KEY": "gsk-env"}, store=store)
    assert settings.provider == "openai"
    assert settings.groq_api_key == "gsk-env"


def test_load_env_file(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("WHISPER_AGENT_TEST_KEY", "old")
    env_file = tmp_path / ".env"
    env_file.write_text("WHISPER_AGENT_TEST_KEY=new\n", encoding="utf-8")

    assert load_env_file(env_file, override=True) is True
    assert os.environ["WHISPER_AGENT_TEST_KEY"] == "new"


def test_load_env_file_without_path_is_noop(tmp_path: Path) -> None:
    assert load_env_file(None) is False
    assert load_env_file(tmp_path / "missing.env") is False
