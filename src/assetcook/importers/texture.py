"""Texture2D importer: PNG/JPEG -> single-mip uncompressed pixel blob."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from ..blob.constants import (
    BLOB_FLAG_SRGB,
    TEXTURE_BYTES_PER_PIXEL,
    TEXTURE_FORMAT_R8,
    TEXTURE_FORMAT_RGB8,
    TEXTURE_FORMAT_RGBA8,
)
from ..blob.packers import assemble_blob, pack_texture_desc
from ..errors import (
    E_EMPTY,
    E_FORMAT,
    E_PARSE,
    E_PITCH,
    E_SIZE,
    format_error,
    structural_error,
)
from ..registry.models import AssetType, TextureDesc
from ..utils.io import read_bytes

__all__ = [
    "TEXTURE_EXTENSIONS",
    "DecodedImage",
    "decode_image",
    "cook_texture_image",
    "cook_texture_bytes",
    "cook_texture",
]

TEXTURE_EXTENSIONS = (".png", ".jpg", ".jpeg")
_SUPPORTED_CODECS = ("PNG", "JPEG")

# PIL mode -> (converted mode, blob format)
_MODE_TARGETS = {
    "1": ("L", TEXTURE_FORMAT_R8),
    "L": ("L", TEXTURE_FORMAT_R8),
    "LA": ("RGBA", TEXTURE_FORMAT_RGBA8),
    "PA": ("RGBA", TEXTURE_FORMAT_RGBA8),
    "RGBA": ("RGBA", TEXTURE_FORMAT_RGBA8),
}


@dataclass(slots=True)
class DecodedImage:
    width: int
    height: int
    row_pitch: int
    format: int
    pixels: bytes


def _target_mode(img: Image.Image) -> Tuple[str, int]:
    if img.mode == "P" and "transparency" in img.info:
        return "RGBA", TEXTURE_FORMAT_RGBA8
    return _MODE_TARGETS.get(img.mode, ("RGB", TEXTURE_FORMAT_RGB8))


def decode_image(data: bytes) -> DecodedImage:
    """Decode PNG/JPEG bytes into tightly packed 8-bit rows."""
    if not data:
        raise structural_error(E_EMPTY, "Image source is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.format not in _SUPPORTED_CODECS:
                raise format_error(E_FORMAT, f"Unsupported image codec {img.format!r}")
            mode, fmt = _target_mode(img)
            converted = img.convert(mode)
            width, height = converted.size
            pixels = converted.tobytes()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise format_error(E_PARSE, f"Image decode failed: {e}") from e
    return DecodedImage(
        width=width,
        height=height,
        row_pitch=width * TEXTURE_BYTES_PER_PIXEL[fmt],
        format=fmt,
        pixels=pixels,
    )


def cook_texture_image(image: DecodedImage, srgb: bool = True) -> Tuple[bytes, TextureDesc]:
    bpp = TEXTURE_BYTES_PER_PIXEL.get(image.format)
    if bpp is None:
        raise format_error(E_FORMAT, f"Unknown texture format {image.format}")
    if image.width == 0 or image.height == 0:
        raise structural_error(E_EMPTY, "Texture has zero extent")
    if image.row_pitch < image.width * bpp:
        raise structural_error(
            E_PITCH,
            "Row pitch smaller than width * bytes per pixel",
            {"row_pitch": image.row_pitch, "width": image.width, "bpp": bpp},
        )
    expected = image.row_pitch * image.height
    if len(image.pixels) != expected:
        raise structural_error(
            E_SIZE,
            "Decoded pixel size does not match row_pitch * height",
            {"expected": expected, "actual": len(image.pixels)},
        )
    desc = pack_texture_desc(image.width, image.height, image.format, 1, image.row_pitch)
    flags = BLOB_FLAG_SRGB if srgb else 0
    blob = assemble_blob(AssetType.TEXTURE2D, desc, image.pixels, flags)
    return blob, TextureDesc(
        width=image.width,
        height=image.height,
        mip_count=1,
        format=image.format,
        srgb=srgb,
    )


def cook_texture_bytes(data: bytes, srgb: bool = True) -> Tuple[bytes, TextureDesc]:
    return cook_texture_image(decode_image(data), srgb)


def cook_texture(path: Path, srgb: bool = True) -> Tuple[bytes, TextureDesc]:
    return cook_texture_bytes(read_bytes(Path(path)), srgb)
