"""Error taxonomy for script-to-audio generation."""


class ConvoAudioError(Exception):
    """Base class. ``str(err)`` is safe to show to the person who made the request."""


class ConfigurationError(ConvoAudioError):
    """Fatal at startup, e.g. the API key is missing."""


class ValidationError(ConvoAudioError):
    """The request cannot be turned into audio as given."""


class UpstreamError(ConvoAudioError):
    """The remote voice service failed or answered with something unusable."""


class SynthesisError(UpstreamError):
    """A text-to-speech call failed; the whole artifact is abandoned."""


class GenerationCancelled(ConvoAudioError):
    """The caller went away; remaining synthesis calls were skipped."""
