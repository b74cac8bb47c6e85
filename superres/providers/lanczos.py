"""Pillow-only provider: Lanczos resampling followed by an unsharp mask."""

from __future__ import annotations

from typing import Optional

from PIL import Image, ImageFilter

from superres.config import get_config
from superres.provider import (
    CapabilityProvider,
    ProviderState,
    ProvisionResult,
    ProvisionStatus,
    TransformHandle,
)

config = get_config()


class LanczosTransform(TransformHandle):
    def __init__(
        self, radius: float = 1.5, percent: int = 50, threshold: int = 2
    ) -> None:
        self.radius = radius
        self.percent = percent
        self.threshold = threshold

    def apply(
        self, image: Image.Image, target_width: int, target_height: int
    ) -> Image.Image:
        if image.size != (target_width, target_height):
            image = image.resize(
                (target_width, target_height), Image.Resampling.LANCZOS
            )
        return image.filter(
            ImageFilter.UnsharpMask(
                radius=self.radius, percent=self.percent, threshold=self.threshold
            )
        )


class LanczosProvider(CapabilityProvider):
    """Always-available interpolation backend.

    Has nothing to provision; it is ``Ready`` unless super-resolution has been
    switched off in the configuration.
    """

    name = "lanczos"

    def __init__(self, enabled: Optional[bool] = None) -> None:
        if enabled is None:
            enabled = bool(getattr(config, "SUPERRES_ENABLED", True))
        self.enabled = enabled

    def get_state(self) -> ProviderState:
        if not self.enabled:
            return ProviderState.DISABLED_BY_USER
        return ProviderState.READY

    async def provision(self) -> ProvisionResult:
        return ProvisionResult(ProvisionStatus.SUCCESS)

    async def create_transform(self) -> TransformHandle:
        return LanczosTransform()
