"""
On-device garment detection with YOLO.

Detection is optional: the capture pipeline works without a detector and
treats an empty result as "show the unannotated image".

Boxes follow the normalized bottom-left convention used by camera frameworks.
Ultralytics reports normalized boxes with a top-left origin, so they are
flipped on the way in; ``to_pixel_rect`` flips them back for drawing and
cropping.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.1


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Normalized rectangle, origin at the bottom-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @classmethod
    def from_top_left_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Build a box from normalized top-left-origin corner coordinates."""

        return cls(x=x1, y=1.0 - y2, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True, slots=True)
class PixelRect:
    """Pixel rectangle with a top-left origin."""

    x: float
    y: float
    width: float
    height: float

    def as_box(self) -> tuple[int, int, int, int]:
        """Integer (left, upper, right, lower) tuple accepted by Pillow."""

        left = round(self.x)
        upper = round(self.y)
        return left, upper, left + round(self.width), upper + round(self.height)


@dataclass(frozen=True, slots=True)
class DetectedObject:
    """Single detection: best label, its confidence and the ranked alternatives."""

    label: str
    confidence: float
    bounding_box: BoundingBox
    labels: tuple[tuple[str, float], ...] = field(default=())


def to_pixel_rect(box: BoundingBox, image_width: float, image_height: float) -> PixelRect:
    """Map a normalized bottom-left box onto top-left pixel coordinates."""

    return PixelRect(
        x=box.min_x * image_width,
        y=(1 - box.max_y) * image_height,
        width=box.width * image_width,
        height=box.height * image_height,
    )


def crop_to_box(image: Image.Image, box: BoundingBox) -> Image.Image:
    """Crop to the detection; the original image is returned for degenerate boxes."""

    rect = to_pixel_rect(box, image.width, image.height)
    left, upper, right, lower = rect.as_box()
    left, upper = max(0, left), max(0, upper)
    right, lower = min(image.width, right), min(image.height, lower)
    if right <= left or lower <= upper:
        return image
    return image.crop((left, upper, right, lower))


def best_labels(detections: Iterable[DetectedObject]) -> list[DetectedObject]:
    """Collapse detections sharing a box, keeping the highest-confidence label per box."""

    best: dict[BoundingBox, DetectedObject] = {}
    for detection in detections:
        current = best.get(detection.bounding_box)
        if current is None or detection.confidence > current.confidence:
            best[detection.bounding_box] = detection
    return list(best.values())


def draw_overlay(image: Image.Image, detections: Sequence[DetectedObject]) -> Image.Image:
    """Return a copy of the image with detection boxes and labels drawn on it."""

    annotated = image.convert("RGB")
    draw = ImageDraw.Draw(annotated)
    for detection in best_labels(detections):
        rect = to_pixel_rect(detection.bounding_box, annotated.width, annotated.height)
        left, upper, right, lower = rect.as_box()
        draw.rectangle((left, upper, right, lower), outline=(255, 0, 0), width=3)
        draw.text(
            (left + 4, upper + 4),
            f"{detection.label} {detection.confidence:.0%}",
            fill=(255, 0, 0),
        )
    return annotated


class ObjectDetector(Protocol):
    """Anything able to find garments in an upright image."""

    async def detect(self, image: Image.Image) -> list[DetectedObject]:
        ...


class YOLOClothingDetector:
    """Ultralytics YOLO wrapper producing ``DetectedObject`` lists."""

    def __init__(
        self,
        model_path: str = "yolov8n.pt",
        *,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        model: Any | None = None,
    ) -> None:
        self.model_path = model_path
        self.confidence_threshold = confidence_threshold
        self._model = model

    def _load_model(self) -> Any:
        if self._model is None:
            from ultralytics import YOLO

            resolved = self.model_path
            if not Path(resolved).exists():
                logger.info("Model weights %s not found locally; ultralytics will download them.", resolved)
            self._model = YOLO(resolved)
        return self._model

    async def detect(self, image: Image.Image) -> list[DetectedObject]:
        """Run inference in a worker thread and return detections in model order."""

        return await asyncio.to_thread(self._detect_sync, image)

    def _detect_sync(self, image: Image.Image) -> list[DetectedObject]:
        model = self._load_model()
        if image.mode != "RGB":
            image = image.convert("RGB")

        results = model(image, conf=self.confidence_threshold, verbose=False)

        detections: list[DetectedObject] = []
        dropped = 0
        for result in results:
            names = getattr(result, "names", None) or {}
            for box in result.boxes:
                confidence = float(box.conf[0])
                if confidence < self.confidence_threshold:
                    dropped += 1
                    continue
                class_id = int(box.cls[0])
                label = names.get(class_id, str(class_id)) if isinstance(names, dict) else str(class_id)
                x1, y1, x2, y2 = (float(value) for value in box.xyxyn[0])
                detections.append(
                    DetectedObject(
                        label=label,
                        confidence=confidence,
                        bounding_box=BoundingBox.from_top_left_xyxy(x1, y1, x2, y2),
                        labels=((label, confidence),),
                    ),
                )

        logger.debug(
            "Detection finished: %d kept, %d under threshold %.2f",
            len(detections),
            dropped,
            self.confidence_threshold,
        )
        return detections
