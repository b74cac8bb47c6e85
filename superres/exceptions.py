"""Exception hierarchy shared by providers and the image I/O layer.

None of these cross the caller-facing API; :class:`superres.scaling.ScalingService`
and :class:`superres.api.SuperResolutionAPI` recover them into results.
"""

from __future__ import annotations


class SuperResolutionError(RuntimeError):
    """Base error for super-resolution failures."""


class ProviderError(SuperResolutionError):
    """Raised by a capability provider when a call cannot be completed."""


class ProviderUnavailableError(ProviderError):
    """Raised when the provider's runtime dependencies are missing."""


class ModelWeightsError(ProviderError):
    """Raised when model weights cannot be fetched or loaded."""


class ImageIOError(SuperResolutionError):
    """Base error for input decode and output write failures."""


class ImageDecodeError(ImageIOError):
    """Raised when the input image is missing, unsupported or corrupted."""


class ImageWriteError(ImageIOError):
    """Raised when the output image cannot be encoded or written."""


__all__ = [
    "SuperResolutionError",
    "ProviderError",
    "ProviderUnavailableError",
    "ModelWeightsError",
    "ImageIOError",
    "ImageDecodeError",
    "ImageWriteError",
]
