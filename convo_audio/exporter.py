"""Wrap assembled audio into a downloadable file."""

import logging
import re
import struct

from convo_audio.config import AudioFormat, PCM_22050_MONO
from convo_audio.constants import DEFAULT_BASENAME, MAX_WAV_DATA_BYTES, MP3_PAUSE_WARNING
from convo_audio.errors import ValidationError
from convo_audio.models import Artifact, OutputMode, PauseEvent, Segment

logger = logging.getLogger(__name__)

WAVE_FORMAT_PCM = 1
ID3V1_SIZE = 128


def wrap_wav(pcm: bytes, audio_format: AudioFormat = PCM_22050_MONO) -> bytes:
    """Prefix raw PCM with the canonical 44-byte RIFF/WAVE header.

    RIFF size is 36 + len(pcm); the data chunk size is len(pcm). Raises
    ValidationError when that does not fit the 32-bit size fields.
    """
    if len(pcm) > MAX_WAV_DATA_BYTES:
        raise ValidationError(f"Audio is too long for a WAV file ({len(pcm)} bytes).")
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + len(pcm),
        b"WAVE",
        b"fmt ",
        16,                         # fmt chunk size
        WAVE_FORMAT_PCM,
        audio_format.channels,
        audio_format.sample_rate,
        audio_format.byte_rate,
        audio_format.block_align,
        audio_format.bit_depth,
        b"data",
        len(pcm),
    )
    return header + pcm


def strip_id3v2(buf: bytes) -> bytes:
    """Drop a leading ID3v2 tag (10-byte header + syncsafe size)."""
    if len(buf) < 10 or buf[:3] != b"ID3":
        return buf
    size = (buf[6] & 0x7F) << 21 | (buf[7] & 0x7F) << 14 | (buf[8] & 0x7F) << 7 | (buf[9] & 0x7F)
    return buf[10 + size:]


def strip_id3v1(buf: bytes) -> bytes:
    """Drop a trailing 128-byte ID3v1 ``TAG`` block."""
    if len(buf) >= ID3V1_SIZE and buf[-ID3V1_SIZE:-ID3V1_SIZE + 3] == b"TAG":
        return buf[:-ID3V1_SIZE]
    return buf


def concat_mp3(buffers: list[bytes]) -> bytes:
    """Join independently encoded MP3 streams.

    Leading tags are kept only on the first stream and trailing tags only on
    the last. Frames are not re-encoded, so small gaps or clicks at the seams
    are expected.
    """
    last = len(buffers) - 1
    parts = []
    for i, buf in enumerate(buffers):
        if i > 0:
            buf = strip_id3v2(buf)
        if i < last:
            buf = strip_id3v1(buf)
        parts.append(buf)
    return b"".join(parts)


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated: 'Atomic Structure!' -> 'atomic-structure'."""
    slug = text.lower()
    slug = re.sub(r"['\"]", "", slug)
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return slug.strip("-")


def suggest_filename(title: str, override: str, extension: str) -> str:
    """Filename from the override, else the title, else "audio"."""
    base = (override or "").strip() or (title or "").strip() or DEFAULT_BASENAME
    return f"{slugify(base) or DEFAULT_BASENAME}.{extension}"


def encode(
    segments: list[Segment],
    mode: OutputMode,
    filename: str,
    audio_format: AudioFormat = PCM_22050_MONO,
) -> Artifact:
    """Concatenate segments in order and package them as an Artifact."""
    ordered = sorted(segments, key=lambda s: s.index)

    if mode is OutputMode.WAV:
        data = wrap_wav(b"".join(s.data for s in ordered), audio_format)
        return Artifact(data=data, content_type=mode.content_type, filename=filename)

    artifact = Artifact(
        data=concat_mp3([s.data for s in ordered]),
        content_type=mode.content_type,
        filename=filename,
    )
    if any(isinstance(s.event, PauseEvent) for s in ordered):
        logger.warning("%s (%s)", MP3_PAUSE_WARNING, filename)
        artifact.warnings.append(MP3_PAUSE_WARNING)
    return artifact
