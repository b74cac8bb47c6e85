"""Real-ESRGAN (PyTorch) capability provider.

Provisioning downloads the model weights into ``MODELS_DIR`` when they are
missing and builds the network on the configured device. Both steps run in a
worker thread so the event loop stays responsive while they take their time.

The heavy dependencies (``torch``, ``basicsr``, ``realesrgan``) live in the
``ml`` extra. Without them the provider reports
``NotSupportedOnCurrentSystem``.
"""

from __future__ import annotations

import asyncio
import importlib.util
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import cv2
import numpy as np
import requests
from PIL import Image

from superres.config import get_config
from superres.exceptions import (
    ModelWeightsError,
    ProviderError,
    ProviderUnavailableError,
)
from superres.logger import setup_logger
from superres.provider import (
    CapabilityProvider,
    ProviderState,
    ProvisionResult,
    ProvisionStatus,
    TransformHandle,
)

logger = setup_logger(__name__)
config = get_config()

REAL_ESRGAN_MODELS: Dict[str, Dict[str, Any]] = {
    "realesrgan_x4plus": {
        "scale": 4,
        "filename": "RealESRGAN_x4plus.pth",
        "url": "https://github.com/xinntao/Real-ESRGAN/releases/download/v0.1.0/RealESRGAN_x4plus.pth",
        "blocks": 23,
        "feat": 64,
        "grow": 32,
    },
    "realesrgan_x4plus_anime_6B": {
        "scale": 4,
        "filename": "RealESRGAN_x4plus_anime_6B.pth",
        "url": "https://github.com/xinntao/Real-ESRGAN/releases/download/v0.1.0/RealESRGAN_x4plus_anime_6B.pth",
        "blocks": 6,
        "feat": 64,
        "grow": 32,
    },
    "realesrgan_x2plus": {
        "scale": 2,
        "filename": "RealESRGAN_x2plus.pth",
        "url": "https://github.com/xinntao/Real-ESRGAN/releases/download/v0.2.0/RealESRGAN_x2plus.pth",
        "blocks": 23,
        "feat": 64,
        "grow": 32,
    },
}

REQUIRED_MODULES = ("torch", "basicsr", "realesrgan")


def select_device(preference: str, cuda_available: bool) -> str:
    normalized = (preference or "auto").lower()
    if normalized == "cpu":
        return "cpu"
    # "cuda" and "auto" both fall back to CPU when no GPU is present
    return "cuda" if cuda_available else "cpu"


def _resize_to_dimensions(image: np.ndarray, width: int, height: int) -> np.ndarray:
    if image.shape[1] == width and image.shape[0] == height:
        return image

    shrinking = width < image.shape[1] or height < image.shape[0]
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC
    return cv2.resize(image, (width, height), interpolation=interpolation)


class RealESRGANTransform(TransformHandle):
    """Runs one image through a built ``RealESRGANer``.

    The upsampler is shared by every handle of a provider, so calls are
    serialized with the provider's lock.
    """

    def __init__(self, upsampler: Any, lock: threading.Lock) -> None:
        self._upsampler = upsampler
        self._lock = lock

    def apply(
        self, image: Image.Image, target_width: int, target_height: int
    ) -> Image.Image:
        width, height = image.size
        has_alpha = image.mode == "RGBA"
        pixels = np.asarray(image.convert("RGBA" if has_alpha else "RGB"))
        # Real-ESRGAN works on BGR(A) arrays
        if has_alpha:
            bgr = pixels[:, :, [2, 1, 0, 3]]
        else:
            bgr = pixels[:, :, ::-1]

        outscale = target_width / float(max(1, width))
        with self._lock:
            output, _ = self._upsampler.enhance(
                np.ascontiguousarray(bgr), outscale=outscale
            )

        output = _resize_to_dimensions(output, target_width, target_height)
        if output.ndim == 3 and output.shape[2] == 4:
            rgb = output[:, :, [2, 1, 0, 3]]
        else:
            rgb = output[:, :, ::-1]
        return Image.fromarray(np.ascontiguousarray(rgb.astype(np.uint8)))


class RealESRGANProvider(CapabilityProvider):
    """Real-ESRGAN backed provider with lazy weight download."""

    name = "realesrgan"

    def __init__(
        self,
        model_name: Optional[str] = None,
        *,
        enabled: Optional[bool] = None,
        device: Optional[str] = None,
        models_dir: Optional[Path] = None,
    ) -> None:
        if enabled is None:
            enabled = bool(getattr(config, "SUPERRES_ENABLED", True))
        self.enabled = enabled
        self.model_name = model_name or getattr(
            config, "SUPERRES_MODEL", "realesrgan_x4plus"
        )
        self.model_config = REAL_ESRGAN_MODELS.get(self.model_name)
        self.device_preference = device or getattr(config, "SUPERRES_DEVICE", "auto")
        self.models_dir = Path(models_dir or config.MODELS_DIR)
        self.tile = max(0, int(getattr(config, "SUPERRES_TILE", 0)))
        self.tile_pad = max(0, int(getattr(config, "SUPERRES_TILE_PAD", 10)))
        self.use_half = bool(getattr(config, "SUPERRES_HALF_PRECISION", False))
        self.download_timeout = float(
            getattr(config, "SUPERRES_DOWNLOAD_TIMEOUT", 300.0)
        )

        self._upsampler: Any = None
        self._device = "cpu"
        self._lock = threading.Lock()

        if self.model_config is None:
            logger.warning("Unknown Real-ESRGAN model '%s'", self.model_name)

    # ------------------------------------------------------------------
    # Capability provider contract
    # ------------------------------------------------------------------
    def get_state(self) -> ProviderState:
        if not self.enabled:
            return ProviderState.DISABLED_BY_USER
        if self.model_config is None or not self._dependencies_present():
            return ProviderState.NOT_SUPPORTED_ON_CURRENT_SYSTEM
        if self._upsampler is not None:
            return ProviderState.READY
        return ProviderState.NOT_READY

    async def provision(self) -> ProvisionResult:
        if self._upsampler is not None:
            return ProvisionResult(ProvisionStatus.SUCCESS)
        if self.model_config is None:
            return ProvisionResult(
                ProvisionStatus.FAILURE,
                f"Unknown Real-ESRGAN model '{self.model_name}'",
            )

        try:
            weights = await asyncio.to_thread(self._ensure_weights)
            upsampler = await asyncio.to_thread(self._build_upsampler, weights)
        except ProviderError as exc:
            logger.error("Real-ESRGAN provisioning failed: %s", exc)
            return ProvisionResult(ProvisionStatus.FAILURE, str(exc))

        self._upsampler = upsampler
        logger.info(
            "Real-ESRGAN backend initialized (%s, device=%s)",
            weights.name,
            self._device,
        )
        return ProvisionResult(ProvisionStatus.SUCCESS)

    async def create_transform(self) -> TransformHandle:
        if self._upsampler is None:
            raise ProviderError("Real-ESRGAN model has not been provisioned")
        return RealESRGANTransform(self._upsampler, self._lock)

    # ------------------------------------------------------------------
    # Provisioning helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _dependencies_present() -> bool:
        return all(
            importlib.util.find_spec(module) is not None
            for module in REQUIRED_MODULES
        )

    @property
    def weights_path(self) -> Path:
        return self.models_dir / self.model_config["filename"]

    def _ensure_weights(self) -> Path:
        target = self.weights_path
        if target.exists():
            return target

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_suffix(target.suffix + ".download")
        url = self.model_config["url"]

        try:
            logger.info("Downloading Real-ESRGAN weights to %s", target)
            with requests.get(url, stream=True, timeout=self.download_timeout) as resp:
                resp.raise_for_status()
                with open(tmp_path, "wb") as fh:
                    for chunk in resp.iter_content(chunk_size=8192):
                        if chunk:
                            fh.write(chunk)
            tmp_path.replace(target)
            return target
        except (requests.RequestException, OSError) as exc:
            raise ModelWeightsError(
                f"Failed to download Real-ESRGAN weights from {url}: {exc}"
            ) from exc
        finally:
            if tmp_path.exists():
                tmp_path.unlink(missing_ok=True)

    def _build_upsampler(self, weights: Path) -> Any:
        try:
            import torch
            from basicsr.archs.rrdbnet_arch import RRDBNet
            from realesrgan import RealESRGANer
        except Exception as exc:
            raise ProviderUnavailableError(
                f"Real-ESRGAN libraries unavailable: {exc}"
            ) from exc

        self._device = select_device(self.device_preference, torch.cuda.is_available())
        half_precision = self.use_half and self._device == "cuda"

        model_config = self.model_config
        net = RRDBNet(
            num_in_ch=3,
            num_out_ch=3,
            num_feat=model_config["feat"],
            num_block=model_config["blocks"],
            num_grow_ch=model_config["grow"],
            scale=model_config["scale"],
        )

        try:
            return RealESRGANer(
                scale=model_config["scale"],
                model_path=str(weights),
                model=net,
                tile=self.tile,
                tile_pad=self.tile_pad,
                pre_pad=0,
                half=half_precision,
                device=torch.device(self._device),
            )
        except Exception as exc:
            raise ModelWeightsError(
                f"Failed to load Real-ESRGAN weights {weights.name}: {exc}"
            ) from exc


__all__ = [
    "REAL_ESRGAN_MODELS",
    "RealESRGANProvider",
    "RealESRGANTransform",
    "select_device",
]
