"""All magic numbers and configuration constants."""

SAMPLE_RATE = 22050                 # Hz, matches the pcm_22050 output format
CHANNELS = 1                        # mono
BIT_DEPTH = 16                      # bits per sample, signed little-endian
WAV_HEADER_SIZE = 44                # canonical RIFF/WAVE header length

API_ROOT = "https://api.elevenlabs.io/v1"
MODEL_ID = "eleven_v3"
PCM_OUTPUT_FORMAT = "pcm_22050"     # must agree with SAMPLE_RATE
MP3_OUTPUT_FORMAT = "mp3_22050_64"  # 22.05 kHz, 64 kbps
REQUEST_TIMEOUT = 60.0              # seconds, per synthesis call
VOICES_TIMEOUT = 15.0               # seconds, voice listing
TTS_RETRY_COUNT = 0                 # extra attempts on transient upstream failures
TTS_RETRY_BASE_DELAY = 1.0          # seconds, base delay for exponential backoff

DEFAULT_PAUSE_SECONDS = 1.2
MAX_PAUSE_SECONDS = 3600            # one pause may not exceed an hour
MAX_WAV_DATA_BYTES = 0xFFFFFFFF - 36  # RIFF sizes are 32-bit
FILLER_SECONDS_PER_DOT = 0.5        # MP3 pause approximation: one "." per half second
DEFAULT_BASENAME = "audio"
DEFAULT_PORT = 5000
DEFAULT_LOG_LEVEL = "INFO"

# Content types that mean the PCM request was answered with a compressed stream
COMPRESSED_CONTENT_TYPES = (
    "audio/mpeg",
    "audio/mp3",
    "audio/ogg",
    "audio/opus",
    "audio/aac",
    "audio/flac",
)

MP3_PAUSE_WARNING = (
    "MP3 output is best-effort: pauses are approximated with short spoken "
    "filler, so their timing is not exact. Use WAV for exact silence."
)

DEFAULT_TITLE = "Atomic Structure"
DEFAULT_SCRIPT = """Title: Atomic Structure

[Speaker 1]: Let's begin. What are the three main subatomic particles in an atom and their relative charges?
[pause]
[Speaker 2]: The proton has a +1 charge, the neutron has no charge, and the electron has a -1 charge.
[pause]"""

VERSION = "0.1.0"
