"""Tests for parser module."""

import pytest

from convo_audio.models import PauseEvent, SpeakEvent, SpeakerSlot
from convo_audio.parser import extract_title, parse_script


def test_parse_speakers_and_pause(sample_script):
    """Speaker lines and a bare pause in order."""
    events = parse_script(sample_script, 1.2)
    assert events == [
        SpeakEvent(slot=SpeakerSlot.ONE, text="Hello"),
        PauseEvent(seconds=1.2),
        SpeakEvent(slot=SpeakerSlot.TWO, text="Hi there!"),
    ]


def test_parse_explicit_pause_value():
    """[pause:N] overrides the default, fractions allowed."""
    events = parse_script("[pause:2.5]\n[pause: .75 ]\n[pause:3]", 1.2)
    assert [e.seconds for e in events] == [2.5, 0.75, 3.0]


def test_parse_pause_case_insensitive():
    events = parse_script("[PAUSE]\n[Pause:0.5]", 1.0)
    assert events == [PauseEvent(seconds=1.0), PauseEvent(seconds=0.5)]


@pytest.mark.parametrize("line", [
    "[pause:-1]", "[pause:abc]", "[pause:nan]", "[pause:inf]", "[pause:-0.5]",
    "[pause:1e3]", "[pause:1_0]", "[pause:+2]", "[pause:0x10]", "[pause:1.5.2]",
])
def test_parse_pause_clamps_bad_values(line):
    """Negative or non-numeric values become 0, never an error."""
    events = parse_script(line, 1.2)
    assert events == [PauseEvent(seconds=0.0)]


def test_parse_pause_empty_value_uses_default():
    assert parse_script("[pause:]", 0.8) == [PauseEvent(seconds=0.8)]


def test_parse_negative_default_clamped():
    assert parse_script("[pause]", -3.0) == [PauseEvent(seconds=0.0)]


def test_parse_pause_bounds_hold_for_all_events():
    script = "[pause]\n[pause:-2]\n[pause:x]\n[pause:0]\n[pause:4.2]"
    for event in parse_script(script, -1.0):
        assert event.seconds >= 0


def test_parse_speaker_text_trimmed():
    events = parse_script("   [Speaker 2]:    spaced out   ", 1.0)
    assert events == [SpeakEvent(slot=SpeakerSlot.TWO, text="spaced out")]


def test_parse_speaker_text_keeps_inner_brackets():
    """Only the marker is stripped; later ']:' stays in the text."""
    events = parse_script("[Speaker 1]: see [note]: this", 1.0)
    assert events[0].text == "see [note]: this"


def test_parse_unrecognized_lines_dropped():
    """Title lines, narration, comments and unknown speakers produce nothing."""
    script = (
        "Title: Something\n"
        "Just narration.\n"
        "# a comment\n"
        "[Speaker 3]: nobody\n"
        "[speaker 1]: wrong case\n"
        "[pause 2]\n"
        "[Speaker 1]:\n"
    )
    assert parse_script(script, 1.0) == []


def test_parse_blank_lines_skipped():
    events = parse_script("\n\n   \n[Speaker 1]: a\n\t\n\n[Speaker 2]: b\n", 1.0)
    assert [e.text for e in events] == ["a", "b"]


def test_parse_crlf_line_endings():
    events = parse_script("[Speaker 1]: a\r\n[pause]\r\n[Speaker 2]: b", 1.0)
    assert len(events) == 3
    assert events[2].text == "b"


def test_parse_empty_script():
    assert parse_script("", 1.2) == []


def test_parse_is_deterministic(sample_script):
    assert parse_script(sample_script, 0.7) == parse_script(sample_script, 0.7)


# --- Title extraction ---

def test_extract_title():
    title, body = extract_title("Title: Atomic Structure\n\n[Speaker 1]: Hi")
    assert title == "Atomic Structure"
    assert body == "[Speaker 1]: Hi"


def test_extract_title_case_and_spacing():
    title, _ = extract_title("  title :   Spaced Title   \n[pause]")
    assert title == "Spaced Title"


def test_extract_title_missing():
    title, body = extract_title("[Speaker 1]: Hi\n[pause]")
    assert title == ""
    assert body == "[Speaker 1]: Hi\n[pause]"


def test_extract_title_only_first_line_removed():
    """A second Title: line stays in the body (and the parser ignores it)."""
    title, body = extract_title("Title: First\n[Speaker 1]: Hi\nTitle: Second")
    assert title == "First"
    assert "Title: Second" in body
    assert parse_script(body, 1.0) == [SpeakEvent(slot=SpeakerSlot.ONE, text="Hi")]


def test_extract_title_idempotent():
    """Running extraction again on the stripped body changes nothing."""
    _, body = extract_title("Title: Once\n\n[Speaker 1]: Hi\n[pause]\n")
    title_again, body_again = extract_title(body)
    assert title_again == ""
    assert body_again == body


def test_parse_pause_value_digits_only():
    """Plain decimals parse; exponent forms clamp to 0 instead of growing."""
    events = parse_script("[pause:10]\n[pause:0.25]\n[pause:.5]\n[pause:2e2]", 1.2)
    assert events == [
        PauseEvent(seconds=10.0),
        PauseEvent(seconds=0.25),
        PauseEvent(seconds=0.5),
        PauseEvent(seconds=0.0),
    ]
