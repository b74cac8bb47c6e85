"""Capability provider contract.

A provider is the opaque inference backend. The core only ever talks to it
through the four operations below and treats every one of them as fallible and
latency-unbounded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from PIL import Image


class ProviderState(str, Enum):
    READY = "Ready"
    NOT_READY = "NotReady"
    DISABLED_BY_USER = "DisabledByUser"
    NOT_SUPPORTED_ON_CURRENT_SYSTEM = "NotSupportedOnCurrentSystem"


class ProvisionStatus(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"


@dataclass(frozen=True)
class ProvisionResult:
    status: ProvisionStatus
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ProvisionStatus.SUCCESS


class TransformHandle:
    """Applies the scaling/sharpening operation to one image."""

    def apply(
        self, image: Image.Image, target_width: int, target_height: int
    ) -> Image.Image:  # pragma: no cover - interface
        raise NotImplementedError


class CapabilityProvider:
    """Base class for inference backends.

    ``get_state`` must be a cheap, side-effect-free query. ``provision`` may
    download weights or warm up hardware and can take arbitrarily long; it has
    no timeout of its own and must tolerate cancellation by the caller.
    """

    name = "provider"

    def get_state(self) -> ProviderState:  # pragma: no cover - interface
        raise NotImplementedError

    async def provision(self) -> ProvisionResult:  # pragma: no cover - interface
        raise NotImplementedError

    async def create_transform(self) -> TransformHandle:  # pragma: no cover - interface
        raise NotImplementedError


__all__ = [
    "ProviderState",
    "ProvisionStatus",
    "ProvisionResult",
    "TransformHandle",
    "CapabilityProvider",
]
