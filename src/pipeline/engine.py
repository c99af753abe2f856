"""
Batch engine for the watermark cleaner.

Runs an ordered worklist of image pairs through detect -> repair. Every pair
ends in an explicit ImageResult; one bad image never aborts the batch. The
only fatal condition is a failure to load the shared inference backend.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from errors import (
    GeometryError,
    ImageDecodeError,
    InferenceError,
    ModelLoadError,
    PersistenceError,
)
from models.result import BatchResult, ImageOutcome, ImageResult
from models.task import ImagePair
from runtime.context import RuntimeContext
from pipeline.stages.detect import DetectStage, DetectStageConfig
from pipeline.stages.repair import RepairStage


@dataclass
class EngineConfig:
    """
    Configuration for the batch engine.

    Attributes:
        max_workers: Image pairs processed concurrently (1 = sequential).
    """
    max_workers: int = 1


class BatchEngine:
    """
    Processes batches of (watermarked, reference) image pairs.

    This engine:
    - Loads the shared inference backend once, before the first image
    - Reads both images, detects the watermark, composites and saves
    - Converts per-image errors into ImageResults and keeps going
    - Builds the human-readable batch log in input order

    Example:
        ctx = create_context_from_config(config)
        engine = BatchEngine(ctx, EngineConfig(max_workers=2))
        result = engine.run([ImagePair("wm.jpg", "clean.jpg")])
        print(result.success_count, result.logs)
    """

    def __init__(self, ctx: RuntimeContext, config: Optional[EngineConfig] = None):
        self.ctx = ctx
        self.config = config or EngineConfig()
        self._detect = DetectStage(
            DetectStageConfig(
                confidence_threshold=ctx.confidence_threshold,
                padding_ratio=ctx.padding_ratio,
            ),
            ctx.backend_provider,
            ctx.region_policy,
        )
        self._repair = RepairStage(ctx.store)
        self._callbacks: List[Callable[[ImageResult], None]] = []

    def add_callback(self, callback: Callable[[ImageResult], None]) -> None:
        """
        Add a callback to be called after each image is processed.

        Args:
            callback: Function taking the ImageResult.
        """
        self._callbacks.append(callback)

    def run(self, pairs: Iterable[ImagePair]) -> BatchResult:
        """
        Process a batch of image pairs.

        Returns:
            BatchResult with one ImageResult per pair, in input order. If the
            backend cannot be loaded the result has `fatal_error` set and no
            image results.
        """
        pairs = list(pairs)
        batch = BatchResult()
        start = time.time()

        provider = self.ctx.backend_provider
        if not provider.is_ready:
            batch.log("Load Model...")
            try:
                provider.get()
            except ModelLoadError as e:
                batch.fatal_error = str(e)
                batch.log(f"Critical Error: {e}")
                logging.error(f"Model initialization failed, batch aborted: {e}")
                return batch
            batch.log("Model Loaded.")

        self.ctx.store.begin_batch()
        logging.info(f"Batch started: {len(pairs)} image pair(s), workers={self.config.max_workers}")

        for result in self._iter_results(pairs):
            batch.results.append(result)
            batch.log(self._describe(result))
            for callback in self._callbacks:
                try:
                    callback(result)
                except Exception as e:
                    logging.warning(f"Callback error: {e}")

        logging.info(
            f"Batch finished in {time.time() - start:.1f}s: "
            f"success={batch.success_count}, not_found={batch.not_found_count}, "
            f"failed={batch.failure_count}"
        )
        return batch

    def run_in_background(
        self,
        pairs: Iterable[ImagePair],
        on_complete: Optional[Callable[[BatchResult], None]] = None,
    ) -> threading.Thread:
        """
        Run a batch on a daemon thread so the caller is not blocked.

        Args:
            pairs: Image pairs to process.
            on_complete: Called with the BatchResult when the batch ends.

        Returns:
            The started thread (join() it to wait).
        """
        pairs = list(pairs)

        def _worker():
            result = self.run(pairs)
            if on_complete is not None:
                on_complete(result)

        thread = threading.Thread(target=_worker, name="batch-engine", daemon=True)
        thread.start()
        return thread

    def _iter_results(self, pairs: List[ImagePair]) -> Iterable[ImageResult]:
        if self.config.max_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                # map() yields in submission order
                yield from pool.map(self.process_one, pairs)
        else:
            for pair in pairs:
                yield self.process_one(pair)

    def process_one(self, pair: ImagePair) -> ImageResult:
        """
        Process a single image pair.

        Never raises; every failure becomes an ImageResult.
        """
        try:
            return self._process(pair)
        except Exception as e:
            logging.exception(f"Unexpected error processing {pair.name}")
            return ImageResult(pair, ImageOutcome.INFERENCE_FAILURE, f"Unexpected error: {e}")

    def _process(self, pair: ImagePair) -> ImageResult:
        store = self.ctx.store
        try:
            target = store.read(pair.watermarked_path)
            reference = store.read(pair.reference_path)
        except ImageDecodeError as e:
            logging.warning(f"Decode failed for {pair.name}: {e}")
            return ImageResult(pair, ImageOutcome.DECODE_FAILURE, str(e))

        try:
            detection = self._detect.process(target)
        except (InferenceError, ModelLoadError) as e:
            logging.error(f"Inference failed for {pair.name}: {e}")
            return ImageResult(pair, ImageOutcome.INFERENCE_FAILURE, str(e))

        if not detection.found:
            logging.info(
                f"No watermark in {pair.name}: max_conf={detection.max_confidence:.3f} "
                f"< {self._detect.confidence_threshold}"
            )
            return ImageResult(
                pair,
                ImageOutcome.NOT_FOUND,
                f"No watermark found (Max Conf < {self._detect.confidence_threshold})",
                confidence=detection.max_confidence,
            )

        try:
            output_path, safe_rect = self._repair.process(
                target, reference, detection.rectangle, pair.watermarked_path
            )
        except GeometryError as e:
            logging.error(f"Geometry failure for {pair.name}: {e}")
            return ImageResult(
                pair, ImageOutcome.GEOMETRY_FAILURE, str(e), confidence=detection.max_confidence
            )
        except PersistenceError as e:
            logging.error(f"Could not save result for {pair.name}: {e}")
            return ImageResult(
                pair, ImageOutcome.PERSISTENCE_FAILURE, str(e), confidence=detection.max_confidence
            )

        return ImageResult(
            pair,
            ImageOutcome.SUCCESS,
            f"Target Found: {safe_rect}",
            rectangle=safe_rect,
            confidence=detection.max_confidence,
            output_path=output_path,
        )

    @staticmethod
    def _describe(result: ImageResult) -> str:
        """One batch-log line for an image result."""
        if result.outcome == ImageOutcome.SUCCESS:
            return f"{result.pair.name}: {result.message} (conf={result.confidence:.2f})"
        if result.outcome == ImageOutcome.NOT_FOUND:
            return f"{result.pair.name}: {result.message}"
        return f"Err processing {result.pair.name}: {result.message}"


def create_engine_from_config(
    ctx: RuntimeContext,
    max_workers: Optional[int] = None,
) -> BatchEngine:
    """
    Factory function to create a BatchEngine from a RuntimeContext.

    Args:
        ctx: RuntimeContext with backend provider, region policy and store.
        max_workers: Overrides `batch.max_workers` from the config.
    """
    workers = max_workers if max_workers is not None else ctx.config.batch.max_workers
    return BatchEngine(ctx, EngineConfig(max_workers=max(1, int(workers))))
