"""Readiness state machine for the capability provider.

The provider reports its state and its faults in vendor-specific terms. This
module collapses both into :class:`~superres.schemas.ReadinessState` and
:class:`~superres.schemas.ReadyFailure` so callers never depend on provider
wording.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Union

from superres.logger import setup_logger
from superres.provider import CapabilityProvider, ProviderState, ProvisionResult
from superres.schemas import (
    READY,
    ReadinessState,
    ReadyFailure,
    ReadyFailureReason,
    ReadyOutcome,
    StateSnapshot,
)

logger = setup_logger(__name__)

NOT_SUPPORTED_MESSAGE = (
    "This device does not support Image Super Resolution. "
    "A Copilot+ PC with a Neural Processing Unit (NPU) is required."
)
UNSUPPORTED_STATE_MESSAGE = (
    "Image Super Resolution is not supported on this system. "
    "A Copilot+ PC with NPU is required."
)
DISABLED_BY_USER_MESSAGE = "AI features are disabled by user in system settings."
MISSING_CAPABILITY_MESSAGE = (
    "Missing required capability. "
    "Ensure the application is granted access to system AI models."
)
PROVISIONING_FAILED_MESSAGE = (
    "The AI model failed to initialize. "
    "This feature requires a Copilot+ PC with a Neural Processing Unit (NPU)."
)
UNKNOWN_STATE_MESSAGE = "Image Super Resolution is in an unknown state."

_STATE_MAP = {
    ProviderState.READY: ReadinessState.READY,
    ProviderState.NOT_READY: ReadinessState.NOT_READY,
    ProviderState.DISABLED_BY_USER: ReadinessState.DISABLED_BY_USER,
    ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM: ReadinessState.UNSUPPORTED,
}

# Checked in order; the first pattern group with a hit wins.
_FAULT_PATTERNS = (
    (
        ReadyFailureReason.NOT_SUPPORTED,
        ("0x80070032", "not supported", "unsupported hardware", "no npu"),
        NOT_SUPPORTED_MESSAGE,
    ),
    (
        ReadyFailureReason.DISABLED_BY_USER,
        ("disabled by user", "disabledbyuser"),
        DISABLED_BY_USER_MESSAGE,
    ),
    (
        ReadyFailureReason.MISSING_CAPABILITY,
        ("capability", "permission", "access is denied", "0x80070005"),
        MISSING_CAPABILITY_MESSAGE,
    ),
)


def classify_provider_fault(error: Union[BaseException, str]) -> ReadyFailure:
    """Map a provider exception (or its text) onto the readiness taxonomy.

    Matching is case-insensitive on the message text. Anything that matches no
    known pattern is reported as a provider fault with the raw text attached,
    never guessed into a more specific category.
    """
    if isinstance(error, BaseException):
        text = str(error) or error.__class__.__name__
    else:
        text = str(error)

    lowered = text.lower()
    for reason, needles, message in _FAULT_PATTERNS:
        if any(needle in lowered for needle in needles):
            return ReadyFailure(reason=reason, message=message, detail=text)

    return ReadyFailure(
        reason=ReadyFailureReason.PROVIDER_FAULT,
        message=f"Provider fault: {text}",
        detail=text,
    )


def failure_for_state(snapshot: StateSnapshot) -> Optional[ReadyFailure]:
    """Return the failure a non-usable snapshot implies, or None.

    ``Ready`` and ``NotReady`` yield None: the first is usable as is, the second
    can still be provisioned.
    """
    state = snapshot.state
    if state in (ReadinessState.READY, ReadinessState.NOT_READY):
        return None
    if state is ReadinessState.DISABLED_BY_USER:
        return ReadyFailure(
            ReadyFailureReason.DISABLED_BY_USER,
            DISABLED_BY_USER_MESSAGE,
            snapshot.diagnostic,
        )
    if state is ReadinessState.UNSUPPORTED:
        return ReadyFailure(
            ReadyFailureReason.NOT_SUPPORTED,
            UNSUPPORTED_STATE_MESSAGE,
            snapshot.diagnostic,
        )
    if snapshot.diagnostic:
        return classify_provider_fault(snapshot.diagnostic)
    return ReadyFailure(ReadyFailureReason.PROVIDER_FAULT, UNKNOWN_STATE_MESSAGE)


def _map_provider_state(raw: object) -> ReadinessState:
    try:
        return _STATE_MAP[ProviderState(raw)]
    except ValueError:
        return ReadinessState.UNKNOWN


class ReadinessController:
    """Answers "is it available", "what state is it in" and "make it ready".

    State is re-derived from the provider on every query. The only thing the
    controller holds is the in-flight provisioning task, so concurrent
    ``ensure_ready`` calls share one ``provision()`` call instead of issuing
    duplicates.
    """

    def __init__(self, provider: CapabilityProvider) -> None:
        self.provider = provider
        self._inflight: Optional[asyncio.Task] = None
        self._waiters = 0

    def query_state(self) -> StateSnapshot:
        try:
            raw = self.provider.get_state()
        except Exception as exc:
            failure = classify_provider_fault(exc)
            logger.warning(
                "State query on provider '%s' failed (%s): %s",
                self.provider.name,
                failure.reason.value,
                failure.detail,
            )
            if failure.reason is ReadyFailureReason.NOT_SUPPORTED:
                return StateSnapshot(ReadinessState.UNSUPPORTED, failure.detail)
            if failure.reason is ReadyFailureReason.DISABLED_BY_USER:
                return StateSnapshot(ReadinessState.DISABLED_BY_USER, failure.detail)
            return StateSnapshot(ReadinessState.UNKNOWN, failure.detail)

        state = _map_provider_state(raw)
        if state is ReadinessState.UNKNOWN:
            logger.warning(
                "Provider '%s' reported unrecognized state %r", self.provider.name, raw
            )
        return StateSnapshot(state)

    def is_available(self) -> bool:
        state = self.query_state().state
        return state in (ReadinessState.READY, ReadinessState.NOT_READY)

    async def ensure_ready(
        self, snapshot: Optional[StateSnapshot] = None
    ) -> ReadyOutcome:
        """Bring the provider to ``Ready``.

        Args:
            snapshot: A state the caller already queried. When omitted the
                provider is queried here.

        Returns:
            An ok outcome, or the :class:`ReadyFailure` explaining why the
            provider cannot be made ready. ``DisabledByUser`` and
            ``Unsupported`` fail without touching the provider.
        """
        if snapshot is None:
            snapshot = self.query_state()

        if snapshot.is_ready:
            return READY

        failure = failure_for_state(snapshot)
        if failure is not None:
            logger.info(
                "Provider '%s' cannot be made ready: %s",
                self.provider.name,
                failure.reason.value,
            )
            return ReadyOutcome(failure)

        return await self._await_provisioning()

    async def _await_provisioning(self) -> ReadyOutcome:
        task = self._inflight
        if task is not None and task.get_loop() is not asyncio.get_running_loop():
            task = None

        if task is None:
            logger.info("Provisioning provider '%s'", self.provider.name)
            task = asyncio.ensure_future(self._provision())
            self._inflight = task
            task.add_done_callback(self._release_inflight)
        else:
            logger.debug("Joining in-flight provisioning of '%s'", self.provider.name)

        self._waiters += 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # Last waiter gone: nobody is left to consume the outcome. The slot
            # is freed before cancelling so later callers start a fresh task
            # instead of joining one that is unwinding.
            if self._waiters == 1 and not task.done():
                logger.info(
                    "Cancelling provisioning of '%s'; no callers remain",
                    self.provider.name,
                )
                if self._inflight is task:
                    self._inflight = None
                task.cancel()
            raise
        finally:
            self._waiters -= 1

    def _release_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _provision(self) -> ReadyOutcome:
        try:
            result: ProvisionResult = await self.provider.provision()
        except Exception as exc:
            failure = classify_provider_fault(exc)
            logger.warning(
                "Provisioning of '%s' raised (%s): %s",
                self.provider.name,
                failure.reason.value,
                failure.detail,
            )
            return ReadyOutcome(failure)

        if result is not None and result.succeeded:
            logger.info("Provider '%s' is ready", self.provider.name)
            return READY

        detail = getattr(result, "detail", None)
        message = PROVISIONING_FAILED_MESSAGE
        if detail:
            message = f"{message} ({detail})"
        logger.warning("Provisioning of '%s' failed: %s", self.provider.name, detail)
        return ReadyOutcome(
            ReadyFailure(ReadyFailureReason.PROVISIONING_FAILED, message, detail)
        )


__all__ = [
    "ReadinessController",
    "classify_provider_fault",
    "failure_for_state",
    "NOT_SUPPORTED_MESSAGE",
    "UNSUPPORTED_STATE_MESSAGE",
    "DISABLED_BY_USER_MESSAGE",
    "MISSING_CAPABILITY_MESSAGE",
    "PROVISIONING_FAILED_MESSAGE",
]
