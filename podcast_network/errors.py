"""Error taxonomy for the audio pipeline."""


class PodcastError(Exception):
    """Base class for every error raised by podcast_network."""


class MalformedAudioData(PodcastError, ValueError):
    """Decode input has an odd byte length or an invalid text encoding."""


class GenerationFailure(PodcastError):
    """The generation service failed to produce a script or audio."""


class TransferFailure(PodcastError):
    """Fetching from or uploading to the audio store failed."""


class NoAudioAvailable(PodcastError):
    """Export found no usable samples in any line."""


class InvalidAudioParameters(PodcastError, ValueError):
    """The container encoder was called with nonsensical parameters."""


class OutputFailure(PodcastError):
    """The speaker output could not be started."""
