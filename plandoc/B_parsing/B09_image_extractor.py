# plandoc/B_parsing/B09_image_extractor.py
"""
Embedded raster image extraction with time-bounded object resolution.

Each image object on a page is resolved to PNG through the PdfBackend. In the
default mode resolution runs on a single background worker; after
``timeout_seconds`` the page moves on without the image so one malformed
object cannot stall the document. The timed-out worker keeps the document
until it returns: image lookups are skipped meanwhile and ``close`` waits for it.
The ``inline_images`` recovery tier disables the worker and resolves directly.

Key Components:
    - ImageExtractor: Per-document extractor bound to an open handle
    - classify_image_kind: Aspect-ratio classification (plan/elevation/section/photo)

Example:
    >>> extractor = ImageExtractor(backend, heuristics, timeout_seconds=1.5)
    >>> images = extractor.extract(handle, page_index=0)
    >>> extractor.close()

Dependencies:
    - A_core.A02_interfaces: PdfBackend, ImageRef, ResolvedImage
    - A_core.A04_heuristics_config: aspect-ratio thresholds
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeout
from typing import List, Optional

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import ExtractedImage, ImageKind
from A_core.A02_interfaces import DocumentHandle, ImageRef, PdfBackend, ResolvedImage
from A_core.A04_heuristics_config import HeuristicsConfig
from A_core.A12_exceptions import ImageResolutionTimeoutError

logger = get_logger(__name__)


def classify_image_kind(width: int, height: int, heuristics: HeuristicsConfig) -> ImageKind:
    """
    Wide drawings are elevations, moderately wide ones plans, tall ones
    sections; everything else is treated as a photograph.
    """
    if width <= 0 or height <= 0:
        return ImageKind.PHOTO
    ratio = width / height
    if ratio > heuristics.elevation_aspect_ratio:
        return ImageKind.ELEVATION
    if ratio >= heuristics.plan_aspect_ratio_min:
        return ImageKind.PLAN
    if ratio < heuristics.section_aspect_ratio:
        return ImageKind.SECTION
    return ImageKind.PHOTO


class ImageExtractor:
    """
    Resolve and classify embedded images for one open document.

    A timed-out resolution keeps running on its worker and still holds the
    document, so no further image calls reach the backend until it finishes.
    ``close`` waits for such workers; call it before closing the handle.

    Attributes:
        timeouts: Number of image objects abandoned after the time budget.
        skipped: Image lookups skipped while a timed-out worker was running.
    """

    def __init__(
        self,
        backend: PdfBackend,
        heuristics: HeuristicsConfig,
        timeout_seconds: float = 1.5,
        max_pixels: Optional[int] = None,
        use_worker: bool = True,
    ) -> None:
        self.backend = backend
        self.heuristics = heuristics
        self.timeout_seconds = timeout_seconds
        self.max_pixels = max_pixels
        self.use_worker = use_worker
        self.timeouts = 0
        self.skipped = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._abandoned: List[Future] = []

    @property
    def stalled(self) -> bool:
        """True while a timed-out resolution is still using the document."""
        self._abandoned = [f for f in self._abandoned if not self._collect(f)]
        return bool(self._abandoned)

    def extract(self, handle: DocumentHandle, page_index: int) -> List[ExtractedImage]:
        """Return every image on the page that resolved in time."""
        images: List[ExtractedImage] = []
        if self.stalled:
            self.skipped += 1
            logger.debug(f"Page {page_index + 1}: images skipped, earlier image still resolving")
            return images

        for ref in self.backend.list_page_images(handle, page_index):
            if self.stalled:
                self.skipped += 1
                logger.debug(f"Page {page_index + 1}: image {ref.name} skipped, earlier image still resolving")
                continue
            try:
                resolved = self._resolve(handle, ref)
            except ImageResolutionTimeoutError as e:
                self.timeouts += 1
                logger.warning(str(e))
                continue
            except (RuntimeError, ValueError) as e:
                logger.debug(f"Page {page_index + 1}: image {ref.name} unresolvable ({e})")
                continue
            if resolved is None:
                continue
            images.append(
                ExtractedImage(
                    page=page_index + 1,
                    name=resolved.name,
                    width=resolved.width,
                    height=resolved.height,
                    data=resolved.png,
                    kind=classify_image_kind(resolved.width, resolved.height, self.heuristics),
                )
            )
        return images

    def _resolve(self, handle: DocumentHandle, ref: ImageRef) -> Optional[ResolvedImage]:
        if not self.use_worker:
            return self.backend.resolve_image(handle, ref, self.max_pixels)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="plandoc-image")
        future = self._executor.submit(self.backend.resolve_image, handle, ref, self.max_pixels)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeout:
            self._abandoned.append(future)
            raise ImageResolutionTimeoutError(
                "Image object did not resolve in time, skipped",
                page_number=ref.page_index + 1,
                image_name=ref.name,
                timeout_seconds=self.timeout_seconds,
            )

    @staticmethod
    def _collect(future: Future) -> bool:
        """Log the outcome of a finished abandoned resolution; False if still running."""
        if not future.done():
            return False
        error = future.exception()
        if error is not None:
            logger.debug(f"Abandoned image resolution failed late: {type(error).__name__}: {error}")
        return True

    def close(self) -> None:
        """Wait for abandoned resolutions, then stop the worker."""
        if self._abandoned:
            logger.debug(f"Waiting for {len(self._abandoned)} timed-out image resolution(s)")
            wait(self._abandoned)
            for future in self._abandoned:
                self._collect(future)
            self._abandoned = []
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


__all__ = ["ImageExtractor", "classify_image_kind"]
