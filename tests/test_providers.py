"""Tests for the bundled capability providers."""

import numpy as np
import pytest
import requests
from PIL import Image

from superres import providers
from superres.exceptions import ModelWeightsError
from superres.provider import ProviderState, ProvisionStatus
from superres.providers import LanczosProvider, RealESRGANProvider, create_provider
from superres.providers import realesrgan as realesrgan_module


def test_create_provider_by_name():
    assert isinstance(create_provider("lanczos"), LanczosProvider)
    assert isinstance(create_provider(" RealESRGAN "), RealESRGANProvider)


def test_create_provider_uses_configured_default():
    # tests run with ENVIRONMENT=testing, which selects lanczos
    assert isinstance(create_provider(), LanczosProvider)


def test_create_provider_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown provider 'npu'"):
        create_provider("npu")


def test_provider_registry_names_match():
    for name, provider_cls in providers.PROVIDERS.items():
        assert provider_cls.name == name


# ----------------------------------------------------------------------
# Lanczos
# ----------------------------------------------------------------------
def test_lanczos_provider_states():
    assert LanczosProvider().get_state() is ProviderState.READY
    assert LanczosProvider(enabled=False).get_state() is ProviderState.DISABLED_BY_USER


@pytest.mark.asyncio
async def test_lanczos_transform_produces_target_size():
    provider = LanczosProvider()
    assert (await provider.provision()).succeeded

    handle = await provider.create_transform()
    result = handle.apply(Image.new("RGB", (10, 6), (90, 90, 90)), 30, 18)

    assert result.size == (30, 18)
    assert result.mode == "RGB"


@pytest.mark.asyncio
async def test_lanczos_sharpen_keeps_size_and_alpha():
    handle = await LanczosProvider().create_transform()
    result = handle.apply(Image.new("RGBA", (8, 8), (10, 20, 30, 128)), 8, 8)

    assert result.size == (8, 8)
    assert result.mode == "RGBA"


# ----------------------------------------------------------------------
# Real-ESRGAN
# ----------------------------------------------------------------------
class DummyUpsampler:
    """Mimics RealESRGANer.enhance with nearest-neighbour repetition."""

    def __init__(self):
        self.calls = []

    def enhance(self, image, outscale=1.0):
        self.calls.append(outscale)
        factor = max(1, int(round(outscale)))
        boosted = np.repeat(np.repeat(image, factor, axis=0), factor, axis=1)
        return boosted, None


@pytest.fixture()
def esrgan(tmp_path, monkeypatch):
    monkeypatch.setattr(
        RealESRGANProvider, "_dependencies_present", staticmethod(lambda: True)
    )
    return RealESRGANProvider(
        "realesrgan_x2plus", enabled=True, device="cpu", models_dir=tmp_path
    )


def test_select_device():
    assert realesrgan_module.select_device("cpu", True) == "cpu"
    assert realesrgan_module.select_device("auto", True) == "cuda"
    assert realesrgan_module.select_device("cuda", False) == "cpu"
    assert realesrgan_module.select_device("", False) == "cpu"


def test_realesrgan_disabled_state(tmp_path):
    provider = RealESRGANProvider(enabled=False, models_dir=tmp_path)
    assert provider.get_state() is ProviderState.DISABLED_BY_USER


def test_realesrgan_unknown_model_is_unsupported(tmp_path):
    provider = RealESRGANProvider("made_up_model", enabled=True, models_dir=tmp_path)
    assert provider.get_state() is ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM


def test_realesrgan_missing_dependencies_is_unsupported(tmp_path, monkeypatch):
    monkeypatch.setattr(
        RealESRGANProvider, "_dependencies_present", staticmethod(lambda: False)
    )
    provider = RealESRGANProvider(enabled=True, models_dir=tmp_path)
    assert provider.get_state() is ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM


def test_realesrgan_not_ready_until_provisioned(esrgan):
    assert esrgan.get_state() is ProviderState.NOT_READY


@pytest.mark.asyncio
async def test_realesrgan_provision_builds_upsampler(esrgan, monkeypatch):
    esrgan.weights_path.write_bytes(b"weights")
    upsampler = DummyUpsampler()
    built = {}

    def fake_build(weights):
        built["weights"] = weights
        return upsampler

    monkeypatch.setattr(esrgan, "_build_upsampler", fake_build)

    result = await esrgan.provision()

    assert result.status is ProvisionStatus.SUCCESS
    assert built["weights"] == esrgan.weights_path
    assert esrgan.get_state() is ProviderState.READY


@pytest.mark.asyncio
async def test_realesrgan_provision_reports_download_failure(esrgan, monkeypatch):
    def failing_get(*_args, **_kwargs):
        raise requests.ConnectionError("network unreachable")

    monkeypatch.setattr(realesrgan_module.requests, "get", failing_get)

    result = await esrgan.provision()

    assert result.status is ProvisionStatus.FAILURE
    assert "network unreachable" in result.detail
    assert esrgan.get_state() is ProviderState.NOT_READY
    assert not esrgan.weights_path.exists()


def test_realesrgan_ensure_weights_raises_typed_error(esrgan, monkeypatch):
    def failing_get(*_args, **_kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(realesrgan_module.requests, "get", failing_get)

    with pytest.raises(ModelWeightsError):
        esrgan._ensure_weights()


@pytest.mark.asyncio
async def test_realesrgan_create_transform_requires_provisioning(esrgan):
    with pytest.raises(Exception, match="not been provisioned"):
        await esrgan.create_transform()


@pytest.mark.asyncio
async def test_realesrgan_transform_hits_exact_target(esrgan):
    upsampler = DummyUpsampler()
    esrgan._upsampler = upsampler

    handle = await esrgan.create_transform()
    result = handle.apply(Image.new("RGB", (5, 3), (255, 0, 0)), 15, 9)

    assert result.size == (15, 9)
    assert result.mode == "RGB"
    assert result.getpixel((0, 0)) == (255, 0, 0)  # BGR round-trip preserved
    assert upsampler.calls == [pytest.approx(3.0)]


@pytest.mark.asyncio
async def test_realesrgan_transform_sharpen_keeps_size_with_alpha(esrgan):
    esrgan._upsampler = DummyUpsampler()

    handle = await esrgan.create_transform()
    result = handle.apply(Image.new("RGBA", (4, 4), (0, 0, 255, 200)), 4, 4)

    assert result.size == (4, 4)
    assert result.mode == "RGBA"
    assert result.getpixel((1, 1)) == (0, 0, 255, 200)
