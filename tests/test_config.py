"""Tests for config module."""

import dataclasses

import pytest

from convo_audio.config import PCM_22050_MONO, AudioFormat, Settings, log_level_from_env
from convo_audio.constants import API_ROOT, DEFAULT_LOG_LEVEL, MODEL_ID
from convo_audio.errors import ConfigurationError


def test_audio_format_defaults():
    assert PCM_22050_MONO == AudioFormat(sample_rate=22050, channels=1, bit_depth=16)
    assert PCM_22050_MONO.block_align == 2
    assert PCM_22050_MONO.byte_rate == 44100


def test_settings_from_env():
    settings = Settings.from_env({
        "ELEVENLABS_API_KEY": " key-123 ",
        "ELEVENLABS_API_ROOT": "https://proxy.example/v1/",
        "CONVO_AUDIO_TIMEOUT": "12.5",
        "CONVO_AUDIO_TTS_RETRIES": "2",
        "PORT": "8080",
        "LOG_LEVEL": "debug",
    })
    assert settings.api_key == "key-123"
    assert settings.api_root == "https://proxy.example/v1"
    assert settings.model_id == MODEL_ID
    assert settings.request_timeout == 12.5
    assert settings.tts_retries == 2
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.audio == PCM_22050_MONO


def test_settings_defaults():
    settings = Settings.from_env({"ELEVENLABS_API_KEY": "k"})
    assert settings.api_root == API_ROOT
    assert settings.tts_retries == 0
    assert settings.port == 5000


@pytest.mark.parametrize("env", [{}, {"ELEVENLABS_API_KEY": ""}, {"ELEVENLABS_API_KEY": "   "}])
def test_settings_missing_key_is_fatal(env):
    with pytest.raises(ConfigurationError, match="ELEVENLABS_API_KEY"):
        Settings.from_env(env)


def test_settings_bad_number():
    with pytest.raises(ConfigurationError, match="Invalid numeric setting"):
        Settings.from_env({"ELEVENLABS_API_KEY": "k", "PORT": "eighty"})


def test_settings_reads_process_environment(monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "from-env")
    assert Settings.from_env(dotenv=False).api_key == "from-env"


def test_settings_immutable_and_key_hidden_from_repr():
    settings = Settings(api_key="super-secret")
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.api_key = "other"
    assert "super-secret" not in repr(settings)


def test_log_level_single_default():
    assert log_level_from_env({}) == DEFAULT_LOG_LEVEL
    assert log_level_from_env({"LOG_LEVEL": "  "}) == DEFAULT_LOG_LEVEL
    assert log_level_from_env({"LOG_LEVEL": "warning"}) == "WARNING"
    assert Settings.from_env({"ELEVENLABS_API_KEY": "k"}).log_level == DEFAULT_LOG_LEVEL
    assert Settings(api_key="k").log_level == DEFAULT_LOG_LEVEL
