"""Concrete capability providers."""

from __future__ import annotations

from typing import Optional

from superres.config import get_config
from superres.provider import CapabilityProvider
from superres.providers.lanczos import LanczosProvider
from superres.providers.realesrgan import RealESRGANProvider

config = get_config()

PROVIDERS = {
    "realesrgan": RealESRGANProvider,
    "lanczos": LanczosProvider,
}


def create_provider(name: Optional[str] = None) -> CapabilityProvider:
    """Build the provider called ``name`` (``SUPERRES_PROVIDER`` by default)."""
    key = (name or getattr(config, "SUPERRES_PROVIDER", "realesrgan")).strip().lower()
    provider_cls = PROVIDERS.get(key)
    if provider_cls is None:
        known = ", ".join(sorted(PROVIDERS))
        raise ValueError(f"Unknown provider '{key}' (expected one of: {known})")
    return provider_cls()


__all__ = ["PROVIDERS", "create_provider", "LanczosProvider", "RealESRGANProvider"]
