"""
SuperRes: On-device image super-resolution
Main package initialization
"""

__version__ = "1.0.0"

from superres.config import Config
from superres.api import SuperResolutionAPI
from superres.schemas import ReadinessState, ScaleRequest, ScaleResult

__all__ = [
    "Config",
    "SuperResolutionAPI",
    "ReadinessState",
    "ScaleRequest",
    "ScaleResult",
]
