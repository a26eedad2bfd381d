"""Data models for script-to-audio generation."""

from dataclasses import dataclass, field
from enum import Enum

from convo_audio.errors import ValidationError


class SpeakerSlot(Enum):
    ONE = 1
    TWO = 2


class OutputMode(Enum):
    WAV = "wav"    # uncompressed, exact silence
    MP3 = "mp3"    # compressed, best-effort concatenation

    @property
    def content_type(self) -> str:
        return "audio/wav" if self is OutputMode.WAV else "audio/mpeg"

    @property
    def extension(self) -> str:
        return self.value


@dataclass(frozen=True)
class SpeakEvent:
    slot: SpeakerSlot
    text: str          # non-empty, already trimmed


@dataclass(frozen=True)
class PauseEvent:
    seconds: float     # always >= 0


Event = SpeakEvent | PauseEvent


@dataclass(frozen=True)
class VoiceAssignment:
    """Voice IDs bound to the two speaker slots for one request."""

    voice1: str
    voice2: str

    def validate(self) -> None:
        if not (self.voice1 or "").strip() or not (self.voice2 or "").strip():
            raise ValidationError("Please choose both voices.")

    def voice_for(self, slot: SpeakerSlot) -> str:
        return self.voice1 if slot is SpeakerSlot.ONE else self.voice2


@dataclass
class Segment:
    index: int         # position in the event sequence
    event: Event
    data: bytes


@dataclass
class Artifact:
    data: bytes
    content_type: str
    filename: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class Voice:
    id: str
    name: str
