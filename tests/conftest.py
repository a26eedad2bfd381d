"""Shared fixtures for conversation audio tests."""

import pytest

from convo_audio.errors import SynthesisError
from convo_audio.models import PauseEvent, SpeakEvent, SpeakerSlot
from convo_audio.tts import Synthesizer


class FakeSynthesizer(Synthesizer):
    """Records every call and returns predictable audio.

    PCM is two bytes per character of text (one 16-bit sample each), filled
    with the voice's first character so segments are easy to tell apart.
    MP3 is an ID3v2 header + fake frames + ID3v1 trailer.
    """

    def __init__(self, fail_on: str | None = None, voices=None, list_error=None, on_call=None):
        self.calls = []
        self.fail_on = fail_on
        self.voices = voices or []
        self.list_error = list_error
        self.on_call = on_call

    def _record(self, kind, voice_id, text):
        self.calls.append((kind, voice_id, text))
        if self.on_call is not None:
            self.on_call(len(self.calls))
        if self.fail_on is not None and self.fail_on in text:
            raise SynthesisError(f"HTTP 500 from voice service: boom on {text!r}")

    def synthesize_pcm(self, voice_id, text, cancelled=None):
        self._record("pcm", voice_id, text)
        return voice_id[:1].encode() * (2 * len(text))

    def synthesize_mp3(self, voice_id, text, cancelled=None):
        self._record("mp3", voice_id, text)
        return fake_mp3(f"{voice_id}:{text}".encode())

    def list_voices(self):
        if self.list_error is not None:
            raise self.list_error
        return list(self.voices)


def fake_mp3(frames: bytes, id3v2_body: bytes = b"\x00" * 5) -> bytes:
    """ID3v2 tag with a syncsafe size, the frames, then a 128-byte ID3v1 tag."""
    size = len(id3v2_body)
    header = b"ID3\x04\x00\x00" + bytes([(size >> 21) & 0x7F, (size >> 14) & 0x7F, (size >> 7) & 0x7F, size & 0x7F])
    return header + id3v2_body + frames + b"TAG" + b"\x00" * 125


@pytest.fixture
def fake_synth():
    return FakeSynthesizer()


@pytest.fixture
def make_synth():
    """Factory for a FakeSynthesizer with custom failure or voice options."""
    return FakeSynthesizer


@pytest.fixture
def make_mp3():
    """Factory for a tagged fake MP3 stream."""
    return fake_mp3


@pytest.fixture
def sample_events():
    """speak(A) / pause(1.0) / speak(B)."""
    return [
        SpeakEvent(slot=SpeakerSlot.ONE, text="Hello"),
        PauseEvent(seconds=1.0),
        SpeakEvent(slot=SpeakerSlot.TWO, text="Hi there!"),
    ]


@pytest.fixture
def sample_script():
    return "[Speaker 1]: Hello\n[pause]\n[Speaker 2]: Hi there!"
