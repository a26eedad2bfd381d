"""Text-to-speech via the ElevenLabs HTTP API."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from urllib.parse import quote

import httpx

from convo_audio.config import Settings
from convo_audio.constants import (
    COMPRESSED_CONTENT_TYPES,
    MP3_OUTPUT_FORMAT,
    PCM_OUTPUT_FORMAT,
    TTS_RETRY_BASE_DELAY,
    VOICES_TIMEOUT,
)
from convo_audio.errors import GenerationCancelled, SynthesisError, UpstreamError, ValidationError
from convo_audio.models import Voice

logger = logging.getLogger(__name__)

# Upstream statuses worth another attempt when retries are enabled
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}

_UNREADABLE_VOICES = "Voice service returned an unreadable voice list"


class Synthesizer(ABC):
    """One utterance in, raw audio bytes out.

    ``cancelled`` is set when the caller has gone away; implementations
    should stop retrying once it is set.
    """

    @abstractmethod
    def synthesize_pcm(self, voice_id: str, text: str, cancelled: threading.Event | None = None) -> bytes:
        """Return mono 16-bit little-endian PCM at 22050 Hz, no header."""

    @abstractmethod
    def synthesize_mp3(self, voice_id: str, text: str, cancelled: threading.Event | None = None) -> bytes:
        """Return a self-contained MP3 stream."""

    def list_voices(self) -> list[Voice]:
        return []

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _check_request(voice_id: str, text: str) -> None:
    if not (voice_id or "").strip():
        raise ValidationError("A voice must be chosen for every speaker.")
    if not (text or "").strip():
        raise ValidationError("Cannot synthesize empty text.")


def _describe(response: httpx.Response) -> str:
    """Short description of a failed upstream response."""
    detail = response.text.strip().replace("\n", " ")[:200]
    if detail:
        return f"HTTP {response.status_code} from voice service: {detail}"
    return f"HTTP {response.status_code} from voice service"


def _parse_voices(payload) -> list[Voice]:
    """``{"voices": [{"voice_id": ..., "name": ...}, ...]}`` -> voices.

    Entries without an id are skipped; any other shape is an UpstreamError.
    """
    if payload is None:
        return []
    if not isinstance(payload, dict):
        raise UpstreamError(_UNREADABLE_VOICES)
    entries = payload.get("voices") or []
    if not isinstance(entries, list) or not all(isinstance(v, dict) for v in entries):
        raise UpstreamError(_UNREADABLE_VOICES)
    return [
        Voice(id=str(v["voice_id"]), name=str(v.get("name") or v["voice_id"]))
        for v in entries
        if v.get("voice_id")
    ]


class ElevenLabsSynthesizer(Synthesizer):
    """Synthesizer backed by ``POST /text-to-speech/{voice_id}``.

    The httpx client is created once and shared by every request; it holds
    no per-request state. ``transport`` replaces the network in tests.
    """

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self.client = httpx.Client(
            base_url=settings.api_root,
            headers={"xi-api-key": settings.api_key},
            timeout=settings.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def list_voices(self) -> list[Voice]:
        """Return available voices sorted by display name."""
        try:
            response = self.client.get("/voices", timeout=VOICES_TIMEOUT)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Could not reach voice service: {e}") from e
        if response.is_error:
            raise UpstreamError(_describe(response))

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(_UNREADABLE_VOICES) from e
        voices = _parse_voices(payload)
        voices.sort(key=lambda v: v.name.casefold())
        return voices

    def synthesize_pcm(self, voice_id: str, text: str, cancelled: threading.Event | None = None) -> bytes:
        response = self._post(voice_id, text, PCM_OUTPUT_FORMAT, cancelled)
        content_type = response.headers.get("content-type", "").lower()
        if any(ct in content_type for ct in COMPRESSED_CONTENT_TYPES):
            raise SynthesisError(
                f"Got {content_type}; expected raw PCM. Check output_format ({PCM_OUTPUT_FORMAT})."
            )
        return response.content

    def synthesize_mp3(self, voice_id: str, text: str, cancelled: threading.Event | None = None) -> bytes:
        return self._post(voice_id, text, MP3_OUTPUT_FORMAT, cancelled).content

    def _post(
        self, voice_id: str, text: str, output_format: str, cancelled: threading.Event | None = None
    ) -> httpx.Response:
        """Single synthesis call, retried only when ``tts_retries`` > 0.

        Transport errors, 429 and 5xx are retried with exponential backoff;
        anything else fails immediately. Once ``cancelled`` is set no further
        attempt is made and the backoff wait ends early.
        """
        _check_request(voice_id, text)
        url = f"/text-to-speech/{quote(voice_id, safe='')}"
        params = {"output_format": output_format, "model_id": self.settings.model_id}
        attempts = 1 + self.settings.tts_retries

        last_error = None
        for attempt in range(attempts):
            if cancelled is not None and cancelled.is_set():
                raise GenerationCancelled(f"Cancelled before synthesis attempt {attempt + 1}")
            try:
                response = self.client.post(url, params=params, json={"text": text})
            except httpx.HTTPError as e:
                last_error = SynthesisError(f"Voice service request failed: {e}")
                last_error.__cause__ = e
            else:
                if response.is_success:
                    logger.debug(
                        "Synthesized %d bytes (%s) for: %s", len(response.content), output_format, text[:50]
                    )
                    return response
                last_error = SynthesisError(_describe(response))
                if response.status_code not in _RETRYABLE_STATUS:
                    raise last_error

            if attempt < attempts - 1:
                delay = TTS_RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning("Synthesis attempt %d/%d failed (%s); retrying in %.1fs",
                               attempt + 1, attempts, last_error, delay)
                _backoff(delay, cancelled)

        raise last_error


def _backoff(delay: float, cancelled: threading.Event | None) -> None:
    """Sleep before the next attempt, waking early when cancelled."""
    if cancelled is None:
        time.sleep(delay)
    else:
        cancelled.wait(delay)
