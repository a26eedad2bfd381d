"""Turn an event sequence into ordered audio segments."""

import logging
import math
import threading

import numpy as np

from convo_audio.config import AudioFormat, PCM_22050_MONO
from convo_audio.constants import FILLER_SECONDS_PER_DOT, MAX_PAUSE_SECONDS, MAX_WAV_DATA_BYTES
from convo_audio.errors import GenerationCancelled, ValidationError
from convo_audio.models import (
    Event,
    OutputMode,
    PauseEvent,
    Segment,
    SpeakEvent,
    SpeakerSlot,
    VoiceAssignment,
)
from convo_audio.tts import Synthesizer

logger = logging.getLogger(__name__)

# signed formats only; 8-bit WAV is unsigned and its silence is not zero
_SAMPLE_DTYPES = {2: np.dtype("<i2"), 4: np.dtype("<i4")}


def silence(seconds: float, audio_format: AudioFormat = PCM_22050_MONO) -> bytes:
    """Zero-filled PCM for ``seconds``: floor(seconds * rate) frames."""
    dtype = _SAMPLE_DTYPES[audio_format.sample_width]
    return np.zeros(_frames(seconds, audio_format) * audio_format.channels, dtype=dtype).tobytes()


def _frames(seconds: float, audio_format: AudioFormat) -> int:
    return max(0, math.floor(seconds * audio_format.sample_rate))


def filler_text(seconds: float) -> str:
    """Punctuation run spoken in place of a pause on the MP3 path.

    One "." per half second, at least one, never more than a
    ``MAX_PAUSE_SECONDS`` pause would get. The resulting gap only roughly
    tracks ``seconds``.
    """
    seconds = min(seconds, MAX_PAUSE_SECONDS)
    return "." * max(1, math.ceil(seconds / FILLER_SECONDS_PER_DOT))


def check_pauses(events: list[Event], mode: OutputMode, audio_format: AudioFormat = PCM_22050_MONO) -> None:
    """Reject pauses that cannot be rendered, before anything is synthesized.

    No single pause may exceed ``MAX_PAUSE_SECONDS``, and on the WAV path the
    silence alone must fit in one RIFF data chunk.
    """
    pauses = [e.seconds for e in events if isinstance(e, PauseEvent)]
    longest = max(pauses, default=0.0)
    if longest > MAX_PAUSE_SECONDS:
        raise ValidationError(
            f"Pause of {longest:g}s is longer than the {MAX_PAUSE_SECONDS}s limit."
        )
    if mode is OutputMode.WAV:
        silence_bytes = sum(_frames(s, audio_format) for s in pauses) * audio_format.block_align
        if silence_bytes > MAX_WAV_DATA_BYTES:
            raise ValidationError("Pauses add up to more silence than a WAV file can hold.")


def _render(
    event: Event,
    voices: VoiceAssignment,
    mode: OutputMode,
    synthesizer: Synthesizer,
    audio_format: AudioFormat,
    cancelled: threading.Event | None,
) -> bytes:
    if isinstance(event, PauseEvent):
        if mode is OutputMode.WAV:
            return silence(event.seconds, audio_format)
        # no local MP3 encoder: speaker 1 "says" the pause
        return synthesizer.synthesize_mp3(
            voices.voice_for(SpeakerSlot.ONE), filler_text(event.seconds), cancelled=cancelled
        )

    if isinstance(event, SpeakEvent):
        voice_id = voices.voice_for(event.slot)
        if mode is OutputMode.WAV:
            return synthesizer.synthesize_pcm(voice_id, event.text, cancelled=cancelled)
        return synthesizer.synthesize_mp3(voice_id, event.text, cancelled=cancelled)

    raise TypeError(f"Unknown event type: {type(event).__name__}")


def assemble(
    events: list[Event],
    voices: VoiceAssignment,
    mode: OutputMode,
    synthesizer: Synthesizer,
    audio_format: AudioFormat = PCM_22050_MONO,
    cancelled: threading.Event | None = None,
) -> list[Segment]:
    """Render every event, strictly in order, one at a time.

    Any failure propagates and abandons the whole sequence; no partial
    result is returned. Setting ``cancelled`` stops before the next event
    and is handed to the synthesizer so pending retries are skipped.
    """
    check_pauses(events, mode, audio_format)
    total = len(events)
    segments = []

    for i, event in enumerate(events):
        if cancelled is not None and cancelled.is_set():
            raise GenerationCancelled(f"Cancelled after {i} of {total} segments")
        logger.debug("Rendering segment %d/%d: %r", i + 1, total, event)
        data = _render(event, voices, mode, synthesizer, audio_format, cancelled)
        segments.append(Segment(index=i, event=event, data=data))

    return segments
