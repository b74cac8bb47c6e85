"""
Raster decode/encode helpers used by the scaling service
"""

import os
import tempfile
from pathlib import Path
from typing import IO, Any, Dict, Optional, Union

from PIL import Image, ImageOps

from superres.config import get_config
from superres.exceptions import ImageDecodeError, ImageWriteError
from superres.logger import setup_logger

logger = setup_logger(__name__)
config = get_config()

DEFAULT_OUTPUT_FORMAT = "PNG"
FALLBACK_MODES = ("RGB", "L", "1")

PathLike = Union[str, os.PathLike]


def load_image(path: PathLike) -> Image.Image:
    """
    Decode an image fully into memory

    The file handle is closed before returning, EXIF orientation is applied
    and the pixels are normalized to RGB or RGBA.

    Args:
        path: Input image path

    Returns:
        Decoded Pillow image

    Raises:
        ImageDecodeError: If the file is missing or cannot be decoded
    """
    source = Path(path)
    if not source.is_file():
        raise ImageDecodeError(f"Input image not found: {source}")

    try:
        with Image.open(source) as handle:
            handle.load()
            image = ImageOps.exif_transpose(handle)
            if image is handle:
                image = handle.copy()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(
            f"Unsupported or corrupted image file ({source}): {exc}"
        ) from exc

    image = _normalize_mode(image)
    logger.debug("Loaded %s (%dx%d, %s)", source, image.width, image.height, image.mode)
    return image


def _normalize_mode(image: Image.Image) -> Image.Image:
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    target = "RGBA" if has_alpha else "RGB"
    if image.mode == target:
        return image
    return image.convert(target)


def output_format_for(path: PathLike) -> str:
    """Return the Pillow format implied by the path's extension (PNG fallback)."""
    extension = Path(path).suffix.lower()
    fmt = Image.registered_extensions().get(extension)
    if fmt and fmt in Image.SAVE:
        return fmt
    return DEFAULT_OUTPUT_FORMAT


def _prepare_rgb(image: Image.Image) -> Image.Image:
    if image.mode in {"RGBA", "LA"}:
        background = Image.new("RGB", image.size, (255, 255, 255))
        alpha = image.split()[-1]
        background.paste(image.convert("RGBA"), mask=alpha)
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def _save_options(fmt: str) -> Dict[str, Any]:
    if fmt == "JPEG":
        return {"quality": int(getattr(config, "SUPERRES_JPEG_QUALITY", 95))}
    return {}


def _encode(image: Image.Image, handle: IO[bytes], fmt: str) -> None:
    """Write ``image`` as ``fmt``, reducing the mode until the encoder takes it.

    Some writers Pillow registers cannot store alpha (PCX, EPS) or only
    store bilevel data (XBM). Alpha is flattened onto white first, then the
    image is narrowed to greyscale and finally to 1-bit.
    """
    options = _save_options(fmt)
    try:
        image.save(handle, format=fmt, **options)
        return
    except (OSError, ValueError, KeyError) as exc:
        last_error: Exception = exc

    flattened = _prepare_rgb(image)
    for mode in FALLBACK_MODES:
        if mode == image.mode:
            continue
        candidate = flattened if mode == "RGB" else flattened.convert(mode)
        logger.debug(
            "%s cannot store mode %s (%s); retrying as %s",
            fmt,
            image.mode,
            last_error,
            mode,
        )
        handle.seek(0)
        handle.truncate()
        try:
            candidate.save(handle, format=fmt, **options)
            return
        except (OSError, ValueError, KeyError) as exc:
            last_error = exc
    raise last_error


def save_image(image: Image.Image, path: PathLike) -> Path:
    """
    Encode ``image`` to ``path``, replacing any existing file

    The data is written to a sibling temporary file first and moved into place
    with ``os.replace`` so readers never observe a half-written output.

    Args:
        image: Image to persist
        path: Output path; its parent directory must exist

    Returns:
        The written path

    Raises:
        ImageWriteError: If the image cannot be encoded or written
    """
    target = Path(path)
    parent = target.parent
    if not parent.is_dir():
        raise ImageWriteError(f"Output directory does not exist: {parent}")

    fmt = output_format_for(target)
    prepared = _prepare_rgb(image) if fmt == "JPEG" else image

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=parent, prefix=f".{target.stem}-", suffix=".partial", delete=False
        ) as handle:
            tmp_path = Path(handle.name)
            _encode(prepared, handle, fmt)
        os.replace(tmp_path, target)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageWriteError(f"Unable to write {target}: {exc}") from exc
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink(missing_ok=True)

    logger.info("Saved %s (%dx%d, %s)", target, image.width, image.height, fmt)
    return target


__all__ = ["load_image", "save_image", "output_format_for"]
