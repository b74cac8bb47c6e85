"""Caller-facing facade over the readiness controller and scaling service.

This is the surface a UI or IPC layer talks to. It mirrors the operations of
the desktop addon it replaces and never lets an exception through: failures
come back as ``"Error: ..."`` strings or failed :class:`ScaleResult` objects.
"""

from __future__ import annotations

from typing import Optional

from superres.logger import setup_logger
from superres.provider import CapabilityProvider
from superres.providers import create_provider
from superres.readiness import ReadinessController
from superres.scaling import ScalingService
from superres.schemas import ErrorKind, ReadinessState, ScaleRequest, ScaleResult

logger = setup_logger(__name__)

READY_RESPONSE = "Ready"


class SuperResolutionAPI:
    """Availability, readiness and scaling operations for one provider."""

    def __init__(
        self,
        provider: Optional[CapabilityProvider] = None,
        *,
        auto_provision: Optional[bool] = None,
    ) -> None:
        self.provider = provider or create_provider()
        self.controller = ReadinessController(self.provider)
        self.service = ScalingService(
            self.provider, self.controller, auto_provision=auto_provision
        )
        logger.info("Initialized SuperResolutionAPI with provider '%s'", self.provider.name)

    def is_available(self) -> bool:
        """True when the model is ready or can be made ready on this machine."""
        return self.controller.is_available()

    def get_ready_state(self) -> str:
        snapshot = self.controller.query_state()
        if snapshot.state is ReadinessState.UNKNOWN and snapshot.diagnostic:
            return f"Error: {snapshot.diagnostic}"
        return snapshot.state.value

    async def ensure_model_ready(self) -> str:
        try:
            outcome = await self.controller.ensure_ready()
        except Exception as exc:
            logger.error("ensure_model_ready failed: %s", exc, exc_info=True)
            return f"Error: {exc}"

        if outcome.ok:
            return READY_RESPONSE
        return f"Error: {outcome.failure.message}"

    async def scale_image(
        self, input_path: str, output_path: str, scale_factor: int
    ) -> ScaleResult:
        request = ScaleRequest(str(input_path), str(output_path), scale_factor)
        try:
            return await self.service.scale(request)
        except Exception as exc:
            logger.error("scale_image failed: %s", exc, exc_info=True)
            return ScaleResult.failed(
                f"Error scaling image: {exc}", ErrorKind.PROVIDER_FAULT
            )

    async def sharpen_image(self, input_path: str, output_path: str) -> ScaleResult:
        return await self.scale_image(input_path, output_path, 1)


__all__ = ["SuperResolutionAPI", "READY_RESPONSE"]
