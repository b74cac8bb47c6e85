"""Tests for the caller-facing SuperResolutionAPI facade."""

import pytest

from conftest import FakeProvider
from superres.api import SuperResolutionAPI
from superres.provider import ProviderState, ProvisionResult, ProvisionStatus
from superres.providers import LanczosProvider
from superres.schemas import ErrorKind


@pytest.mark.parametrize(
    "state, expected",
    [
        (ProviderState.READY, "Ready"),
        (ProviderState.NOT_READY, "NotReady"),
        (ProviderState.DISABLED_BY_USER, "DisabledByUser"),
        (ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM, "Unsupported"),
        ("Transitioning", "Unknown"),
    ],
)
def test_get_ready_state_strings(state, expected):
    assert SuperResolutionAPI(FakeProvider(state)).get_ready_state() == expected


def test_get_ready_state_reports_provider_fault_as_error_string():
    api = SuperResolutionAPI(FakeProvider(state_error=RuntimeError("RPC failed")))

    assert api.get_ready_state() == "Error: RPC failed"
    assert api.is_available() is False


def test_is_available():
    assert SuperResolutionAPI(FakeProvider(ProviderState.NOT_READY)).is_available()
    assert not SuperResolutionAPI(
        FakeProvider(ProviderState.DISABLED_BY_USER)
    ).is_available()


@pytest.mark.asyncio
async def test_ensure_model_ready_provisions():
    provider = FakeProvider(ProviderState.NOT_READY)
    api = SuperResolutionAPI(provider)

    assert await api.ensure_model_ready() == "Ready"
    assert await api.ensure_model_ready() == "Ready"
    assert provider.count("provision") == 1


@pytest.mark.asyncio
async def test_ensure_model_ready_unsupported_mentions_npu_requirement():
    api = SuperResolutionAPI(FakeProvider(ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM))

    result = await api.ensure_model_ready()

    assert result.startswith("Error: ")
    assert "Copilot+ PC" in result
    assert "NPU" in result


@pytest.mark.asyncio
async def test_ensure_model_ready_disabled_by_user():
    api = SuperResolutionAPI(FakeProvider(ProviderState.DISABLED_BY_USER))

    assert await api.ensure_model_ready() == (
        "Error: AI features are disabled by user in system settings."
    )


@pytest.mark.asyncio
async def test_ensure_model_ready_provisioning_failure():
    provider = FakeProvider(
        ProviderState.NOT_READY,
        provision_result=ProvisionResult(ProvisionStatus.FAILURE, "disk full"),
    )
    api = SuperResolutionAPI(provider)

    result = await api.ensure_model_ready()

    assert result.startswith("Error: The AI model failed to initialize.")
    assert "disk full" in result


@pytest.mark.asyncio
async def test_unsupported_scale_uses_same_classification(sample_image, tmp_path):
    provider = FakeProvider(ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM)
    api = SuperResolutionAPI(provider)

    ensure_message = await api.ensure_model_ready()
    provider.calls.clear()
    result = await api.scale_image(str(sample_image), str(tmp_path / "out.png"), 2)

    assert ensure_message == f"Error: {result.message}"
    assert result.error_kind is ErrorKind.NOT_SUPPORTED
    assert provider.calls == ["get_state"]


@pytest.mark.asyncio
async def test_scale_image_with_lanczos_provider(sample_image, tmp_path):
    api = SuperResolutionAPI(LanczosProvider(enabled=True))
    output = tmp_path / "big.png"

    result = await api.scale_image(sample_image, output, 2)

    assert result.success
    assert result.output_path == str(output)
    assert result.to_dict() == {
        "success": True,
        "message": "Image scaled successfully from 512x384 to 1024x768",
        "outputPath": str(output),
        "originalWidth": 512,
        "originalHeight": 384,
        "scaledWidth": 1024,
        "scaledHeight": 768,
        "errorKind": None,
    }


@pytest.mark.asyncio
async def test_sharpen_image_keeps_dimensions(sample_image, tmp_path):
    api = SuperResolutionAPI(LanczosProvider(enabled=True))

    result = await api.sharpen_image(str(sample_image), str(tmp_path / "sharp.png"))

    assert result.success
    assert (result.scaled_width, result.scaled_height) == (512, 384)


@pytest.mark.asyncio
async def test_scale_image_validation_failure_dict(tmp_path):
    api = SuperResolutionAPI(FakeProvider())

    result = await api.scale_image("in.png", str(tmp_path / "out.png"), 0)

    payload = result.to_dict()
    assert payload["success"] is False
    assert payload["message"] == "Scale factor must be between 1 and 8"
    assert payload["outputPath"] == ""
    assert payload["errorKind"] == "ValidationError"


@pytest.mark.asyncio
async def test_scale_image_never_raises(sample_image, tmp_path, monkeypatch):
    api = SuperResolutionAPI(FakeProvider())

    async def exploding_scale(_request):
        raise RuntimeError("unexpected bug")

    monkeypatch.setattr(api.service, "scale", exploding_scale)

    result = await api.scale_image(str(sample_image), str(tmp_path / "out.png"), 2)

    assert result.success is False
    assert result.message == "Error scaling image: unexpected bug"
