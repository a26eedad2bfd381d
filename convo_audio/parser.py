"""Parse a two-speaker script into speak and pause events.

The parser is a best-effort filter, not a validator: lines it does not
recognise are dropped and it never raises.
"""

import math
import re

from convo_audio.models import Event, PauseEvent, SpeakEvent, SpeakerSlot

# [pause] or [pause:<value>]; the value is checked separately so bad numbers clamp to 0
_PAUSE_RE = re.compile(r"^\[pause(?:\s*:\s*([^\]]*?))?\s*\]$", re.IGNORECASE)

# plain decimal seconds only: no sign, exponent or digit separators
_SECONDS_RE = re.compile(r"[0-9]*\.?[0-9]+")

_TITLE_RE = re.compile(r"^\s*Title\s*:\s*(.+?)\s*$", re.IGNORECASE)

SPEAKER_MARKERS = (
    ("[Speaker 1]:", SpeakerSlot.ONE),
    ("[Speaker 2]:", SpeakerSlot.TWO),
)


def extract_title(text: str) -> tuple[str, str]:
    """Return (title, body) with the first ``Title:`` line removed from body.

    Only the first matching line counts; later ``Title:`` lines stay in the
    body. Title is "" when there is no such line. The body is trimmed.
    """
    title = ""
    found = False
    rest = []
    for raw in text.splitlines():
        match = _TITLE_RE.match(raw)
        if match and not found:
            title = match.group(1).strip()
            found = True
            continue
        rest.append(raw)
    return title, "\n".join(rest).strip()


def _to_seconds(value: str | None, default: float) -> float:
    """Clamp a pause value to a finite number >= 0."""
    if value is None or not value.strip():
        seconds = default
    elif _SECONDS_RE.fullmatch(value.strip()):
        seconds = float(value)
    else:
        return 0.0
    if not math.isfinite(seconds):
        return 0.0
    return max(0.0, seconds)


def _parse_line(line: str, default_pause: float) -> Event | None:
    match = _PAUSE_RE.match(line)
    if match:
        return PauseEvent(seconds=_to_seconds(match.group(1), default_pause))

    for marker, slot in SPEAKER_MARKERS:
        if line.startswith(marker):
            text = line[len(marker):].strip()
            # a bare marker has nothing to say
            return SpeakEvent(slot=slot, text=text) if text else None

    return None


def parse_script(text: str, default_pause: float) -> list[Event]:
    """Parse script text into an ordered list of events.

    Blank lines, ``Title:`` lines and anything unrecognised produce no event.
    """
    events = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        event = _parse_line(line, default_pause)
        if event is not None:
            events.append(event)
    return events
