"""Shared fixtures and fake providers for the SuperRes test-suite."""

import asyncio
import os
from typing import List, Optional

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from PIL import Image

from superres.provider import (
    CapabilityProvider,
    ProviderState,
    ProvisionResult,
    ProvisionStatus,
    TransformHandle,
)


class FakeTransform(TransformHandle):
    def __init__(self, provider: "FakeProvider") -> None:
        self.provider = provider

    def apply(self, image, target_width, target_height):
        self.provider.calls.append("apply")
        if self.provider.apply_error is not None:
            raise self.provider.apply_error
        size = self.provider.output_size or (target_width, target_height)
        return Image.new(image.mode, size, color=(30, 60, 90))


class FakeProvider(CapabilityProvider):
    """Scriptable provider that records every call it receives."""

    name = "fake"

    def __init__(
        self,
        state=ProviderState.READY,
        *,
        provision_result: Optional[ProvisionResult] = None,
        provision_error: Optional[Exception] = None,
        state_error: Optional[Exception] = None,
        transform_error: Optional[Exception] = None,
        apply_error: Optional[Exception] = None,
        output_size=None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.state = state
        self.provision_result = provision_result or ProvisionResult(
            ProvisionStatus.SUCCESS
        )
        self.provision_error = provision_error
        self.state_error = state_error
        self.transform_error = transform_error
        self.apply_error = apply_error
        self.output_size = output_size
        self.gate = gate
        self.provision_cancelled = False
        self.calls: List[str] = []

    def get_state(self):
        self.calls.append("get_state")
        if self.state_error is not None:
            raise self.state_error
        return self.state

    async def provision(self):
        self.calls.append("provision")
        if self.gate is not None:
            try:
                await self.gate.wait()
            except asyncio.CancelledError:
                self.provision_cancelled = True
                raise
        if self.provision_error is not None:
            raise self.provision_error
        if self.provision_result.succeeded:
            self.state = ProviderState.READY
        return self.provision_result

    async def create_transform(self):
        self.calls.append("create_transform")
        if self.transform_error is not None:
            raise self.transform_error
        return FakeTransform(self)

    def count(self, name: str) -> int:
        return self.calls.count(name)


@pytest.fixture()
def fake_provider():
    return FakeProvider()


@pytest.fixture()
def sample_image(tmp_path):
    """Write a 512x384 PNG and return its path."""
    path = tmp_path / "input.png"
    Image.new("RGB", (512, 384), color=(200, 100, 50)).save(path, format="PNG")
    return path
