"""Capture pipeline: normalize, detect, upload and decode one garment photo at a time."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable

from PIL import Image

from glasscloset.api.client import AnalysisClient, read_json_object
from glasscloset.catalog.decoder import AttributeDecoder
from glasscloset.catalog.index import ClosetIndex
from glasscloset.catalog.models import ClothingAttributes, ClothingItem
from glasscloset.config.settings import Settings
from glasscloset.errors import ClosetError
from glasscloset.imgproc.detector import (
    DetectedObject,
    ObjectDetector,
    YOLOClothingDetector,
    crop_to_box,
)
from glasscloset.imgproc.normalize import ImageNormalizer, RawImage, encode_jpeg
from glasscloset.metrics.prometheus_exporter import pipeline_rejected_total, pipeline_runs_total
from glasscloset.services.stages import ALLOWED_TRANSITIONS, PipelineStage

logger = logging.getLogger(__name__)

Subscriber = Callable[["PipelineSnapshot"], None]


class InvalidTransitionError(RuntimeError):
    """Raised when the pipeline tries to move between stages that are not connected."""


@dataclass(frozen=True, slots=True)
class PipelineSnapshot:
    """Everything currently true about the capture in progress or just finished."""

    stage: PipelineStage = PipelineStage.IDLE
    cycle: int = 0
    image: Image.Image | None = None
    detections: tuple[DetectedObject, ...] = ()
    attributes: ClothingAttributes | None = None
    error: ClosetError | None = None
    needs_authentication: bool = False

    @property
    def in_flight(self) -> bool:
        return self.stage.in_flight


class PipelineStateStore:
    """Single-writer store publishing immutable snapshots to subscribers."""

    def __init__(self) -> None:
        self._snapshot = PipelineSnapshot()
        self._subscribers: list[Subscriber] = []

    @property
    def snapshot(self) -> PipelineSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback, deliver the current snapshot, and return an unsubscribe function."""

        self._subscribers.append(callback)
        self._deliver(callback, self._snapshot)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def commit(self, stage: PipelineStage, **changes: Any) -> PipelineSnapshot:
        current = self._snapshot
        if stage not in ALLOWED_TRANSITIONS[current.stage]:
            raise InvalidTransitionError(f"{current.stage.value} -> {stage.value} is not allowed")
        self._snapshot = replace(current, stage=stage, **changes)
        logger.debug("Cycle %d: %s -> %s", self._snapshot.cycle, current.stage.value, stage.value)
        for callback in list(self._subscribers):
            self._deliver(callback, self._snapshot)
        return self._snapshot

    @staticmethod
    def _deliver(callback: Subscriber, snapshot: PipelineSnapshot) -> None:
        try:
            callback(snapshot)
        except Exception:
            logger.exception("Pipeline subscriber %r failed", callback)


class CapturePipeline:
    """
    Runs one capture cycle at a time.

    A capture requested while a cycle is in flight is rejected: the call
    returns the current snapshot and the in-flight upload carries on.
    """

    def __init__(
        self,
        client: AnalysisClient,
        *,
        normalizer: ImageNormalizer | None = None,
        detector: ObjectDetector | None = None,
        decoder: AttributeDecoder | None = None,
        closet: ClosetIndex | None = None,
        store: PipelineStateStore | None = None,
        jpeg_quality: int = 80,
        crop_to_detection: bool = False,
    ) -> None:
        self._client = client
        self._normalizer = normalizer or ImageNormalizer()
        self._detector = detector
        self._decoder = decoder or AttributeDecoder()
        self._closet = closet
        self._store = store or PipelineStateStore()
        self._jpeg_quality = jpeg_quality
        self._crop_to_detection = crop_to_detection

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: AnalysisClient,
        *,
        closet: ClosetIndex | None = None,
    ) -> "CapturePipeline":
        detector = None
        if settings.detection_enabled:
            detector = YOLOClothingDetector(
                settings.detection_model,
                confidence_threshold=settings.detection_confidence,
            )
        return cls(
            client,
            detector=detector,
            closet=closet,
            jpeg_quality=settings.jpeg_quality,
            crop_to_detection=settings.crop_to_detection,
        )

    @property
    def state(self) -> PipelineSnapshot:
        return self._store.snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self._store.subscribe(callback)

    async def capture(self, image: RawImage) -> PipelineSnapshot:
        """Run a full cycle for the captured image and return the terminal snapshot."""

        current = self._store.snapshot
        if current.in_flight:
            logger.warning("Capture rejected: cycle %d is still %s.", current.cycle, current.stage.value)
            pipeline_rejected_total.inc()
            return current

        self._store.commit(
            PipelineStage.CAPTURING,
            cycle=current.cycle + 1,
            image=None,
            detections=(),
            attributes=None,
            error=None,
            needs_authentication=False,
        )
        try:
            return await self._run(image)
        except ClosetError as exc:
            return self._fail(exc)
        except asyncio.CancelledError:
            self._fail(ClosetError.operation_failed("Capture cancelled"))
            raise
        except Exception as exc:
            logger.exception("Capture cycle %d failed unexpectedly", self._store.snapshot.cycle)
            return self._fail(ClosetError.operation_failed(str(exc) or type(exc).__name__))

    def reset(self) -> bool:
        """Return to idle after a finished cycle; refused while a cycle is in flight."""

        current = self._store.snapshot
        if current.in_flight:
            return False
        if current.stage is not PipelineStage.IDLE:
            self._store.commit(
                PipelineStage.IDLE,
                image=None,
                detections=(),
                attributes=None,
                error=None,
                needs_authentication=False,
            )
        return True

    async def _run(self, image: RawImage) -> PipelineSnapshot:
        normalized = await asyncio.to_thread(self._normalizer.normalize_or_original, image)
        pixels = normalized.pixels

        detections = await self._detect(pixels)
        upload_pixels = pixels
        if detections and self._crop_to_detection:
            best = max(detections, key=lambda detection: detection.confidence)
            upload_pixels = crop_to_box(pixels, best.bounding_box)

        image_data = await asyncio.to_thread(encode_jpeg, upload_pixels, self._jpeg_quality)

        self._store.commit(PipelineStage.UPLOADING, image=pixels, detections=tuple(detections))
        response = await self._client.post_image(image_data)

        self._store.commit(PipelineStage.DECODING)
        payload = read_json_object(response)
        attributes = self._decoder.decode_analysis(payload)
        if attributes.is_empty:
            logger.info("Analysis returned no usable attributes for cycle %d.", self._store.snapshot.cycle)

        if self._closet is not None:
            await self._closet.add(ClothingItem.from_analysis(attributes))

        snapshot = self._store.commit(PipelineStage.SUCCEEDED, attributes=attributes)
        pipeline_runs_total.labels(outcome="succeeded").inc()
        return snapshot

    async def _detect(self, pixels: Image.Image) -> list[DetectedObject]:
        if self._detector is None:
            return []
        try:
            detections = await self._detector.detect(pixels)
        except Exception as exc:
            logger.warning("Detection failed, continuing with the plain image: %s", exc, exc_info=True)
            return []
        if not detections:
            logger.info("No garments detected; showing the unannotated image.")
        return list(detections)

    def _fail(self, error: ClosetError) -> PipelineSnapshot:
        logger.error("Capture cycle %d failed: %s", self._store.snapshot.cycle, error.description)
        pipeline_runs_total.labels(outcome=error.kind.value).inc()
        return self._store.commit(
            PipelineStage.FAILED,
            attributes=None,
            error=error,
            needs_authentication=error.requires_login,
        )
