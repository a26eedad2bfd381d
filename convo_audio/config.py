"""Runtime configuration. Built once at startup, read-only afterwards."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from convo_audio.constants import (
    API_ROOT,
    BIT_DEPTH,
    CHANNELS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    MODEL_ID,
    REQUEST_TIMEOUT,
    SAMPLE_RATE,
    TTS_RETRY_COUNT,
)
from convo_audio.errors import ConfigurationError


@dataclass(frozen=True)
class AudioFormat:
    """Linear PCM sample layout shared by the synthesizer, assembler and encoder."""

    sample_rate: int = SAMPLE_RATE
    channels: int = CHANNELS
    bit_depth: int = BIT_DEPTH

    @property
    def sample_width(self) -> int:
        return self.bit_depth // 8

    @property
    def block_align(self) -> int:
        return self.channels * self.sample_width

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align


PCM_22050_MONO = AudioFormat()


def log_level_from_env(env: dict | None = None) -> str:
    """``LOG_LEVEL`` upper-cased, or the default when unset or blank."""
    env = os.environ if env is None else env
    return (env.get("LOG_LEVEL") or "").strip().upper() or DEFAULT_LOG_LEVEL


@dataclass(frozen=True)
class Settings:
    api_key: str = field(repr=False)
    api_root: str = API_ROOT
    model_id: str = MODEL_ID
    request_timeout: float = REQUEST_TIMEOUT
    tts_retries: int = TTS_RETRY_COUNT
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    audio: AudioFormat = PCM_22050_MONO

    @classmethod
    def from_env(cls, env: dict | None = None, dotenv: bool = True) -> "Settings":
        """Read settings from the environment (and ``.env`` unless disabled).

        Raises ConfigurationError when ELEVENLABS_API_KEY is missing or a
        numeric value does not parse.
        """
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ

        api_key = (env.get("ELEVENLABS_API_KEY") or "").strip()
        if not api_key:
            raise ConfigurationError("Set ELEVENLABS_API_KEY in the environment or .env")

        try:
            timeout = float(env.get("CONVO_AUDIO_TIMEOUT", REQUEST_TIMEOUT))
            retries = int(env.get("CONVO_AUDIO_TTS_RETRIES", TTS_RETRY_COUNT))
            port = int(env.get("PORT", DEFAULT_PORT))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            api_key=api_key,
            api_root=env.get("ELEVENLABS_API_ROOT", API_ROOT).rstrip("/"),
            model_id=env.get("ELEVENLABS_MODEL_ID", MODEL_ID),
            request_timeout=timeout,
            tts_retries=max(0, retries),
            port=port,
            log_level=log_level_from_env(env),
        )
