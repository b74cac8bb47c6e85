"""Value types shared by the readiness controller and the scaling service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

MIN_SCALE_FACTOR = 1
MAX_SCALE_FACTOR = 8


class ReadinessState(str, Enum):
    """Lifecycle stage of the capability provider."""

    READY = "Ready"
    NOT_READY = "NotReady"
    DISABLED_BY_USER = "DisabledByUser"
    UNSUPPORTED = "Unsupported"
    UNKNOWN = "Unknown"


class ReadyFailureReason(str, Enum):
    NOT_SUPPORTED = "NotSupported"
    DISABLED_BY_USER = "DisabledByUser"
    MISSING_CAPABILITY = "MissingCapability"
    PROVISIONING_FAILED = "ProvisioningFailed"
    PROVIDER_FAULT = "ProviderFault"


class ErrorKind(str, Enum):
    """Failure categories reported on a failed :class:`ScaleResult`."""

    VALIDATION = "ValidationError"
    NOT_SUPPORTED = "NotSupported"
    DISABLED_BY_USER = "DisabledByUser"
    PROVISIONING_FAILED = "ProvisioningFailed"
    PROVIDER_FAULT = "ProviderFault"
    IO_FAILURE = "IOFailure"


_REASON_TO_KIND = {
    ReadyFailureReason.NOT_SUPPORTED: ErrorKind.NOT_SUPPORTED,
    ReadyFailureReason.DISABLED_BY_USER: ErrorKind.DISABLED_BY_USER,
    ReadyFailureReason.MISSING_CAPABILITY: ErrorKind.NOT_SUPPORTED,
    ReadyFailureReason.PROVISIONING_FAILED: ErrorKind.PROVISIONING_FAILED,
    ReadyFailureReason.PROVIDER_FAULT: ErrorKind.PROVIDER_FAULT,
}


@dataclass(frozen=True)
class StateSnapshot:
    """One readiness query: the state plus the provider diagnostic, if any."""

    state: ReadinessState
    diagnostic: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.state is ReadinessState.READY


@dataclass(frozen=True)
class ReadyFailure:
    reason: ReadyFailureReason
    message: str
    detail: Optional[str] = None

    @property
    def error_kind(self) -> ErrorKind:
        return _REASON_TO_KIND[self.reason]


@dataclass(frozen=True)
class ReadyOutcome:
    """Result of ``ensure_ready``: either ok or a :class:`ReadyFailure`."""

    failure: Optional[ReadyFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


READY = ReadyOutcome()


@dataclass(frozen=True)
class ScaleRequest:
    input_path: str
    output_path: str
    scale_factor: int


@dataclass(frozen=True)
class ScaleResult:
    """Outcome of a scale/sharpen call.

    Failed results always carry an empty ``output_path`` and zero dimensions so
    callers never mistake a failed path for a usable file.
    """

    success: bool
    message: str
    output_path: str = ""
    original_width: int = 0
    original_height: int = 0
    scaled_width: int = 0
    scaled_height: int = 0
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def failed(cls, message: str, error_kind: ErrorKind) -> "ScaleResult":
        return cls(success=False, message=message, error_kind=error_kind)

    @classmethod
    def succeeded(
        cls,
        output_path: str,
        original_size: Tuple[int, int],
        scaled_size: Tuple[int, int],
    ) -> "ScaleResult":
        original_width, original_height = original_size
        scaled_width, scaled_height = scaled_size
        return cls(
            success=True,
            message=(
                f"Image scaled successfully from {original_width}x{original_height}"
                f" to {scaled_width}x{scaled_height}"
            ),
            output_path=output_path,
            original_width=original_width,
            original_height=original_height,
            scaled_width=scaled_width,
            scaled_height=scaled_height,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "outputPath": self.output_path,
            "originalWidth": self.original_width,
            "originalHeight": self.original_height,
            "scaledWidth": self.scaled_width,
            "scaledHeight": self.scaled_height,
            "errorKind": self.error_kind.value if self.error_kind else None,
        }


__all__ = [
    "MIN_SCALE_FACTOR",
    "MAX_SCALE_FACTOR",
    "ReadinessState",
    "ReadyFailureReason",
    "ErrorKind",
    "StateSnapshot",
    "ReadyFailure",
    "ReadyOutcome",
    "READY",
    "ScaleRequest",
    "ScaleResult",
]
