"""Scale/sharpen orchestration around a capability provider."""

from __future__ import annotations

import asyncio
from typing import Optional

from superres.config import get_config
from superres.exceptions import ImageIOError, ProviderError
from superres.image_io import load_image, save_image
from superres.logger import setup_logger
from superres.provider import CapabilityProvider
from superres.readiness import ReadinessController
from superres.schemas import (
    MAX_SCALE_FACTOR,
    MIN_SCALE_FACTOR,
    ErrorKind,
    ReadinessState,
    ReadyFailure,
    ReadyFailureReason,
    ScaleRequest,
    ScaleResult,
)

logger = setup_logger(__name__)
config = get_config()

SCALE_FACTOR_MESSAGE = (
    f"Scale factor must be between {MIN_SCALE_FACTOR} and {MAX_SCALE_FACTOR}"
)
AUTO_PROVISION_DISABLED_MESSAGE = (
    "The AI model is not ready and automatic provisioning is disabled. "
    "Call ensure_model_ready() first."
)


def is_valid_scale_factor(value: object) -> bool:
    # bool is an int subclass; True must not pass as a factor of 1
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_SCALE_FACTOR <= value <= MAX_SCALE_FACTOR


class ScalingService:
    """Validates requests, drives readiness and shapes provider output.

    No exception escapes :meth:`scale`; every failure becomes a failed
    :class:`ScaleResult`. Cancellation is the exception: it propagates so a
    caller's timeout stays a timeout.
    """

    def __init__(
        self,
        provider: CapabilityProvider,
        controller: Optional[ReadinessController] = None,
        *,
        auto_provision: Optional[bool] = None,
    ) -> None:
        self.provider = provider
        self.controller = controller or ReadinessController(provider)
        if auto_provision is None:
            auto_provision = bool(getattr(config, "SUPERRES_AUTO_PROVISION", True))
        self.auto_provision = auto_provision

    async def scale(self, request: ScaleRequest) -> ScaleResult:
        if not is_valid_scale_factor(request.scale_factor):
            logger.warning("Rejected scale factor %r", request.scale_factor)
            return ScaleResult.failed(SCALE_FACTOR_MESSAGE, ErrorKind.VALIDATION)

        failure = await self._ensure_provider_ready()
        if failure is not None:
            logger.info("Scale request refused: %s", failure.message)
            return ScaleResult.failed(failure.message, failure.error_kind)

        return await self._run_transform(request)

    async def sharpen(self, input_path: str, output_path: str) -> ScaleResult:
        return await self.scale(ScaleRequest(input_path, output_path, 1))

    async def _ensure_provider_ready(self) -> Optional[ReadyFailure]:
        snapshot = self.controller.query_state()
        if snapshot.is_ready:
            return None

        if snapshot.state is ReadinessState.NOT_READY and not self.auto_provision:
            return ReadyFailure(
                ReadyFailureReason.PROVISIONING_FAILED,
                AUTO_PROVISION_DISABLED_MESSAGE,
            )

        outcome = await self.controller.ensure_ready(snapshot)
        return outcome.failure

    async def _run_transform(self, request: ScaleRequest) -> ScaleResult:
        factor = request.scale_factor

        try:
            image = await asyncio.to_thread(load_image, request.input_path)
        except Exception as exc:
            return self._fault(request, exc, ErrorKind.IO_FAILURE)

        original_width, original_height = image.size
        target_width = original_width * factor
        target_height = original_height * factor

        try:
            handle = await self.provider.create_transform()
            scaled = await asyncio.to_thread(
                handle.apply, image, target_width, target_height
            )
            scaled_size = tuple(getattr(scaled, "size", ()))
            if scaled_size != (target_width, target_height):
                raise ProviderError(
                    f"Provider returned an image of size {scaled_size}, "
                    f"expected {target_width}x{target_height}"
                )
        except Exception as exc:
            return self._fault(request, exc, ErrorKind.PROVIDER_FAULT)

        try:
            await asyncio.to_thread(save_image, scaled, request.output_path)
        except Exception as exc:
            return self._fault(request, exc, ErrorKind.IO_FAILURE)

        logger.info(
            "Scaled %s from %dx%d to %dx%d (x%d)",
            request.input_path,
            original_width,
            original_height,
            target_width,
            target_height,
            factor,
        )
        return ScaleResult.succeeded(
            request.output_path,
            (original_width, original_height),
            (target_width, target_height),
        )

    def _fault(
        self, request: ScaleRequest, exc: Exception, default_kind: ErrorKind
    ) -> ScaleResult:
        kind = ErrorKind.IO_FAILURE if isinstance(exc, ImageIOError) else default_kind
        logger.error(
            "Scaling %s failed (%s): %s",
            request.input_path,
            kind.value,
            exc,
            exc_info=True,
        )
        return ScaleResult.failed(f"Error scaling image: {exc}", kind)


__all__ = [
    "ScalingService",
    "SCALE_FACTOR_MESSAGE",
    "AUTO_PROVISION_DISABLED_MESSAGE",
    "is_valid_scale_factor",
]
