"""Tests for detection geometry and the YOLO wrapper."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from PIL import Image

from glasscloset.imgproc.detector import (
    BoundingBox,
    DetectedObject,
    YOLOClothingDetector,
    best_labels,
    crop_to_box,
    draw_overlay,
    to_pixel_rect,
)


def _box(confidence: float, class_id: int, xyxyn: list[float]) -> SimpleNamespace:
    return SimpleNamespace(conf=[confidence], cls=[class_id], xyxyn=[xyxyn])


class FakeModel:
    """Callable standing in for an ultralytics model."""

    def __init__(self, boxes: list[SimpleNamespace]) -> None:
        self.boxes = boxes
        self.calls: list[dict[str, Any]] = []

    def __call__(self, image: Image.Image, **kwargs: Any) -> list[SimpleNamespace]:
        self.calls.append({"mode": image.mode, **kwargs})
        return [SimpleNamespace(names={0: "shirt", 1: "pants"}, boxes=self.boxes)]


def test_pixel_rect_flips_vertical_origin() -> None:
    rect = to_pixel_rect(BoundingBox(0.1, 0.2, 0.3, 0.4), 1000, 1000)

    assert rect.x == pytest.approx(100)
    assert rect.y == pytest.approx(400)
    assert rect.width == pytest.approx(300)
    assert rect.height == pytest.approx(400)


def test_top_left_corners_round_trip_to_pixels() -> None:
    box = BoundingBox.from_top_left_xyxy(0.1, 0.2, 0.3, 0.4)

    assert box.y == pytest.approx(0.6)
    rect = to_pixel_rect(box, 1000, 500)
    assert rect.as_box() == (100, 100, 300, 200)


@pytest.mark.asyncio
async def test_detector_filters_by_threshold_and_keeps_order() -> None:
    model = FakeModel(
        [
            _box(0.4, 1, [0.0, 0.5, 1.0, 1.0]),
            _box(0.05, 0, [0.1, 0.1, 0.2, 0.2]),
            _box(0.9, 0, [0.2, 0.0, 0.8, 0.5]),
        ],
    )
    detector = YOLOClothingDetector(confidence_threshold=0.1, model=model)

    detections = await detector.detect(Image.new("RGBA", (64, 64)))

    assert [d.label for d in detections] == ["pants", "shirt"]
    assert detections[1].confidence == pytest.approx(0.9)
    assert detections[1].bounding_box.y == pytest.approx(0.5)
    assert model.calls == [{"mode": "RGB", "conf": 0.1, "verbose": False}]


@pytest.mark.asyncio
async def test_detector_returns_empty_list_without_boxes() -> None:
    detector = YOLOClothingDetector(model=FakeModel([]))

    assert await detector.detect(Image.new("RGB", (8, 8))) == []


def test_best_labels_keeps_highest_confidence_per_box() -> None:
    box = BoundingBox(0.1, 0.1, 0.5, 0.5)
    other = BoundingBox(0.6, 0.6, 0.2, 0.2)

    kept = best_labels(
        [
            DetectedObject("shirt", 0.3, box),
            DetectedObject("hoodie", 0.7, box),
            DetectedObject("hat", 0.2, other),
        ],
    )

    assert [(d.label, d.confidence) for d in kept] == [("hoodie", 0.7), ("hat", 0.2)]


def test_crop_to_box_uses_pixel_rect() -> None:
    image = Image.new("RGB", (100, 50))

    cropped = crop_to_box(image, BoundingBox(0.5, 0.0, 0.5, 0.5))

    assert cropped.size == (50, 25)


def test_crop_to_degenerate_box_returns_original() -> None:
    image = Image.new("RGB", (100, 50))

    assert crop_to_box(image, BoundingBox(0.5, 0.5, 0.0, 0.0)) is image


def test_draw_overlay_leaves_source_untouched() -> None:
    image = Image.new("RGB", (100, 100), (255, 255, 255))

    annotated = draw_overlay(image, [DetectedObject("shirt", 0.8, BoundingBox(0.1, 0.1, 0.8, 0.8))])

    assert annotated is not image
    assert annotated.getpixel((10, 10)) == (255, 0, 0)
    assert image.getpixel((10, 10)) == (255, 255, 255)
