"""
Exception hierarchy for Groupwarden.

None of these escape the component that raises them: the gateway, the frame
extractor and the transport wrappers catch them at their boundary and turn
them into "no verdict" or "action skipped" results.
"""


class GroupwardenError(Exception):
    """Base class for all Groupwarden errors."""


class FrameExtractionError(GroupwardenError):
    """Frames could not be sampled from a video or animated image."""


class TransportError(GroupwardenError):
    """A chat transport operation (send, delete, remove) failed."""


class ConfigurationError(GroupwardenError):
    """Required configuration is missing or malformed."""
