"""Error taxonomy shared by the detection and moderation pipeline.

Per-image failures (``InvalidImage``, ``InferenceFailure``,
``TransportFailure``) are caught by the handling unit, logged and the image is
skipped. ``ArtifactIOFailure`` is raised for temporary file writes; deletion
problems are only ever logged. ``PersistenceFailure`` is fatal to the startup
or shutdown phase that raised it.
"""


class NailongWatchError(Exception):
    """Base class for every error raised by NailongWatch."""


class InvalidImage(NailongWatchError):
    """Image bytes are corrupt, have zero dimensions, or the frame is missing."""


class InferenceFailure(NailongWatchError):
    """The inference engine failed or returned an unusable output tensor."""


class ArtifactIOFailure(NailongWatchError):
    """A temporary artifact could not be written."""


class TransportFailure(NailongWatchError):
    """An image could not be downloaded."""


class PersistenceFailure(NailongWatchError):
    """Whitelist or moderation records could not be loaded or saved."""
