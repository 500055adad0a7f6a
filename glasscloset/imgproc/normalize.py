"""Image normalisation helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import IntEnum
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from glasscloset.errors import ClosetError, ErrorKind

logger = logging.getLogger(__name__)

EXIF_ORIENTATION_TAG = 0x0112


class Orientation(IntEnum):
    """EXIF orientation values describing how stored pixels must be turned to look upright."""

    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @classmethod
    def from_exif(cls, value: object) -> "Orientation":
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.UP


_TRANSPOSE_FOR = {
    Orientation.UP_MIRRORED: Image.Transpose.FLIP_LEFT_RIGHT,
    Orientation.DOWN: Image.Transpose.ROTATE_180,
    Orientation.DOWN_MIRRORED: Image.Transpose.FLIP_TOP_BOTTOM,
    Orientation.LEFT_MIRRORED: Image.Transpose.TRANSPOSE,
    Orientation.RIGHT: Image.Transpose.ROTATE_270,
    Orientation.RIGHT_MIRRORED: Image.Transpose.TRANSVERSE,
    Orientation.LEFT: Image.Transpose.ROTATE_90,
}


@dataclass(frozen=True, slots=True)
class RawImage:
    """Captured pixel buffer together with its orientation tag and display scale."""

    pixels: Image.Image
    orientation: Orientation = Orientation.UP
    scale: float = 1.0

    @property
    def is_canonical(self) -> bool:
        return self.orientation == Orientation.UP

    @property
    def size(self) -> tuple[int, int]:
        return self.pixels.size

    @classmethod
    def from_bytes(cls, data: bytes, *, scale: float = 1.0) -> "RawImage":
        """Decode an encoded photo and read its EXIF orientation tag."""

        try:
            pixels = Image.open(BytesIO(data))
            pixels.load()
            orientation = Orientation.from_exif(pixels.getexif().get(EXIF_ORIENTATION_TAG, 1))
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ClosetError(ErrorKind.IMAGE_PROCESSING_ERROR, str(exc)) from exc
        return cls(pixels=pixels, orientation=orientation, scale=scale)


class ImageNormalizer:
    """Ensures every image handed downstream is upright and unmirrored."""

    def normalize(self, image: RawImage) -> RawImage:
        """Return an upright copy of the image, or the image itself when already upright."""

        if image.is_canonical:
            return image

        orientation = Orientation.from_exif(image.orientation)
        method = _TRANSPOSE_FOR.get(orientation)
        if method is None:
            return replace(image, orientation=Orientation.UP)
        try:
            pixels = image.pixels.transpose(method)
        except (OSError, ValueError, MemoryError) as exc:
            raise ClosetError(ErrorKind.IMAGE_PROCESSING_ERROR, str(exc)) from exc

        logger.debug("Fixed image orientation from %s to UP", orientation.name)
        return replace(image, pixels=pixels, orientation=Orientation.UP)

    def normalize_or_original(self, image: RawImage) -> RawImage:
        """Normalize, falling back to the untouched image when rendering fails."""

        try:
            return self.normalize(image)
        except ClosetError as exc:
            logger.warning("Orientation fix failed, keeping original image: %s", exc.message)
            return image


def encode_jpeg(image: RawImage | Image.Image, quality: int = 80) -> bytes:
    """Encode the image as JPEG bytes for upload."""

    pixels = image.pixels if isinstance(image, RawImage) else image
    buffer = BytesIO()
    try:
        if pixels.mode != "RGB":
            pixels = pixels.convert("RGB")
        pixels.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise ClosetError(ErrorKind.IMAGE_CONVERSION_FAILED, str(exc)) from exc
    data = buffer.getvalue()
    if not data:
        raise ClosetError(ErrorKind.IMAGE_CONVERSION_FAILED)
    return data
