"""Straight-line generation pipeline: validate, parse, assemble, encode."""

import logging
import math
import threading
from collections.abc import Mapping
from dataclasses import dataclass

from convo_audio.assembly import assemble
from convo_audio.config import AudioFormat, PCM_22050_MONO
from convo_audio.constants import DEFAULT_PAUSE_SECONDS
from convo_audio.exporter import encode, suggest_filename
from convo_audio.models import Artifact, OutputMode, SpeakEvent, VoiceAssignment
from convo_audio.parser import extract_title, parse_script
from convo_audio.tts import Synthesizer

logger = logging.getLogger(__name__)


def parse_pause(value) -> float:
    """Lenient form value -> seconds >= 0; junk becomes 0."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    return seconds if math.isfinite(seconds) and seconds > 0 else 0.0


def parse_mode(value) -> OutputMode:
    """Form value "mp3" selects MP3; anything else is WAV."""
    return OutputMode.MP3 if str(value or "").strip().lower() == "mp3" else OutputMode.WAV


@dataclass
class GenerationRequest:
    script: str
    voice1: str
    voice2: str
    pause_default: float = DEFAULT_PAUSE_SECONDS
    mode: OutputMode = OutputMode.WAV
    title: str = ""
    filename: str = ""

    @classmethod
    def from_form(cls, form: Mapping) -> "GenerationRequest":
        """Build a request from string-valued form fields."""
        return cls(
            script=form.get("script") or "",
            voice1=(form.get("voice1") or "").strip(),
            voice2=(form.get("voice2") or "").strip(),
            pause_default=parse_pause(form.get("pauseDefault", DEFAULT_PAUSE_SECONDS)),
            mode=parse_mode(form.get("format")),
            title=(form.get("title") or "").strip(),
            filename=(form.get("filename") or "").strip(),
        )

    @property
    def voices(self) -> VoiceAssignment:
        return VoiceAssignment(voice1=self.voice1, voice2=self.voice2)


def produce(
    request: GenerationRequest,
    synthesizer: Synthesizer,
    audio_format: AudioFormat = PCM_22050_MONO,
    cancelled: threading.Event | None = None,
) -> Artifact:
    """Generate one audio file for ``request``.

    Raises ValidationError before any synthesis call when a voice is missing.
    Any synthesis failure aborts the whole request. A script with no events
    still yields a valid (empty) file.
    """
    voices = request.voices
    voices.validate()

    found_title, body = extract_title(request.script)
    title = request.title or found_title
    filename = suggest_filename(title, request.filename, request.mode.extension)

    events = parse_script(body, request.pause_default)
    spoken = sum(1 for e in events if isinstance(e, SpeakEvent))
    logger.info(
        "Generating %s: %d events (%d spoken, %d pauses)",
        filename, len(events), spoken, len(events) - spoken,
    )

    segments = assemble(events, voices, request.mode, synthesizer, audio_format, cancelled)
    artifact = encode(segments, request.mode, filename, audio_format)
    logger.info("Generated %s (%d bytes)", artifact.filename, len(artifact.data))
    return artifact
