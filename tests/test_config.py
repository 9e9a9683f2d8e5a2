"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from voicechat.config import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in (
        "PIPER_MODEL_PATH",
        "PIPER_CONFIG_PATH",
        "PIPER_BIN",
        "TTS_OUTPUT_DIR",
        "SERVER_PORT",
        "CORS_ALLOW_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    settings = Settings(_env_file=None)

    assert settings.piper_model_path is None
    assert settings.piper_config_path is None
    assert settings.piper_bin == "piper"
    assert settings.tts_output_dir is None
    assert settings.server_port == 8000
    assert settings.synthesizer_configured is False


def test_reads_piper_paths_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PIPER_MODEL_PATH", "/models/ru_RU-irina-medium.onnx")
    monkeypatch.setenv("PIPER_CONFIG_PATH", "/models/ru_RU-irina-medium.onnx.json")
    monkeypatch.setenv("PIPER_BIN", "/opt/piper/piper")
    monkeypatch.setenv("TTS_OUTPUT_DIR", str(tmp_path))

    settings = Settings(_env_file=None)

    assert settings.piper_model_path == "/models/ru_RU-irina-medium.onnx"
    assert settings.piper_bin == "/opt/piper/piper"
    assert settings.tts_output_dir == tmp_path
    assert settings.synthesizer_configured is True


def test_blank_values_count_as_unset(monkeypatch) -> None:
    monkeypatch.setenv("PIPER_MODEL_PATH", "   ")
    monkeypatch.setenv("PIPER_CONFIG_PATH", "/models/voice.onnx.json")
    monkeypatch.setenv("PIPER_BIN", "")

    settings = Settings(_env_file=None)

    assert settings.piper_model_path is None
    assert settings.piper_bin == "piper"
    assert settings.synthesizer_configured is False


def test_rejects_invalid_port(monkeypatch) -> None:
    from pydantic import ValidationError

    monkeypatch.setenv("SERVER_PORT", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_cors_origins_default_to_wildcard() -> None:
    assert Settings(_env_file=None).cors_allow_origins == ["*"]


def test_cors_origins_accept_comma_separated_list(monkeypatch) -> None:
    monkeypatch.setenv(
        "CORS_ALLOW_ORIGINS", "http://localhost:3000, https://chat.example.com"
    )

    settings = Settings(_env_file=None)

    assert settings.cors_allow_origins == [
        "http://localhost:3000",
        "https://chat.example.com",
    ]


def test_cors_origins_accept_single_origin(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://localhost:3000")

    assert Settings(_env_file=None).cors_allow_origins == ["http://localhost:3000"]


def test_cors_origins_accept_json_list(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", '["http://a.test", "http://b.test"]')

    assert Settings(_env_file=None).cors_allow_origins == [
        "http://a.test",
        "http://b.test",
    ]
