"""Radial scan-line sampling of a foreground probability image."""

from __future__ import annotations

import math
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import List, Optional, Tuple

import cv2
import numpy as np

from configs.settings import ScanConfig
from exceptions import ScanTimeoutError
from geometry.matrix import compose_affine, invert_affine, transform_affine
from geometry.rect import Rect, bounding_box_2d
from log_config.logger import get_logger, log_performance
from scanlines.line_builder import build_scan_line
from scanlines.types import DirectionData, ScanLine, ScanLineSet

logger = get_logger(__name__)

N_DIRECTION_BUCKETS = 361


def _unit(v: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(v))
    return v / norm if norm > 0 else v


class RadialScanSampler:
    """Extracts edge evidence along ``2N`` scan directions inside a region.

    Each of the N angles in [0, 180) rotates the region, runs a horizontal
    derivative and keeps up to three sub-pixel peaks per row, for the angle
    and its opposite. Angles run on a thread pool; each task writes only its
    own two result slots.
    """

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self._config = config or ScanConfig()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._dir_index: Optional[np.ndarray] = None

    def __enter__(self) -> "RadialScanSampler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    @property
    def n_directions(self) -> int:
        return self._config.n_directions

    @property
    def direction_index(self) -> Optional[np.ndarray]:
        """Slot of the best-aligned direction for each degree in [-180, 180]."""
        return None if self._dir_index is None else self._dir_index.copy()

    def nearest_direction(self, angle_rad: float) -> int:
        """Result slot whose scan direction is closest to ``angle_rad``."""
        if self._dir_index is None:
            self._dir_index = self._build_direction_index()
        wrapped = (angle_rad + math.pi) % (2 * math.pi)
        bucket = int(round(math.degrees(wrapped)))
        return int(self._dir_index[min(bucket, N_DIRECTION_BUCKETS - 1)])

    def compute_scan_lines(self, prob: np.ndarray, roi: Rect) -> ScanLineSet:
        """Scan ``roi`` of a probability image along all directions.

        Raises:
            ValueError: If the region is empty
            ScanTimeoutError: If the directions are not finished before the deadline
        """
        if roi.is_empty():
            raise ValueError(f"Scan region must be non-empty, got {roi}")
        prob = np.asarray(prob, dtype=np.float32)
        n = self._config.n_directions
        start = time.perf_counter()

        slots: List[Optional[DirectionData]] = [None] * (2 * n)
        executor = self._get_executor()
        futures = [executor.submit(self._scan_direction, prob, roi, i, slots) for i in range(n)]

        timeout_s = self._config.timeout_ms / 1000.0
        done, pending = wait(futures, timeout=timeout_s, return_when=FIRST_EXCEPTION)
        for future in done:
            if future.exception() is not None:
                for other in pending:
                    other.cancel()
                logger.error(f"Scan-line extraction failed: {future.exception()}")
                future.result()
        if pending:
            for future in pending:
                future.cancel()
            logger.error(f"Scan-line extraction timed out after {timeout_s}s ({len(pending)} of {n} directions pending)")
            # Stuck workers would otherwise block the next frame
            self.close()
            raise ScanTimeoutError(
                f"Scan-line extraction timed out after {timeout_s}s",
                pending=[i for i, f in enumerate(futures) if f in pending],
            )

        directions = tuple(self._normalize_weights(slots))
        if self._dir_index is None:
            self._dir_index = self._build_direction_index()

        log_performance(
            f"scan lines ({2 * n} directions, roi {roi.width}x{roi.height})",
            (time.perf_counter() - start) * 1000.0,
            threshold_ms=self._config.runtime_budget_ms,
        )
        return ScanLineSet(roi=roi, directions=directions)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._config.max_workers, thread_name_prefix="scanlines"
            )
        return self._executor

    def _scan_direction(self, prob: np.ndarray, roi: Rect, i: int, slots: List[Optional[DirectionData]]) -> None:
        n = self._config.n_directions
        theta_deg = 180.0 / n * i

        A = cv2.getRotationMatrix2D(roi.center, theta_deg, 1.0)
        droi = bounding_box_2d(transform_affine(A, roi.corners()))
        A = compose_affine(np.array([[1.0, 0.0, -droi.x], [0.0, 1.0, -droi.y]]), A)

        dir_prob = cv2.warpAffine(
            prob,
            A,
            (max(droi.width, 1), max(droi.height, 1)),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=0,
        )

        theta = math.radians(theta_deg)
        direction = np.array([math.cos(theta), math.sin(theta)])
        positive, negative = self._calc_scan_lines_for_rows(dir_prob, invert_affine(A))
        positive.dir = direction
        negative.dir = -direction
        slots[i] = positive
        slots[i + n] = negative

    def _calc_scan_lines_for_rows(self, dir_prob: np.ndarray, inv_a: np.ndarray) -> Tuple[DirectionData, DirectionData]:
        rows, cols = dir_prob.shape[:2]
        xend = cols - 1
        half = self._config.gauss_window_half

        edge_prob = cv2.Sobel(dir_prob, cv2.CV_32F, 1, 0, ksize=self._config.sobel_ksize)

        O = transform_affine(inv_a, np.array([0.0, 0.0]))
        P = transform_affine(inv_a, np.array([0.0, float(rows - 1)]))
        positive = DirectionData(dir=np.zeros(2), ystart=O, ydir=_unit(P - O))
        negative = DirectionData(dir=np.zeros(2), ystart=P, ydir=_unit(O - P))

        row_starts = transform_affine(inv_a, np.stack([np.zeros(rows), np.arange(rows, dtype=np.float64)], axis=1))
        row_ends = transform_affine(inv_a, np.stack([np.full(rows, float(xend)), np.arange(rows, dtype=np.float64)], axis=1))

        neg_lines: List[Optional[ScanLine]] = [None] * rows
        for y in range(rows):
            ep = edge_prob[y]
            pos_data = np.maximum(ep, 0.0)
            neg_data = np.maximum(-ep, 0.0)[::-1]
            start_pt, end_pt = row_starts[y], row_ends[y]
            xdir = _unit(end_pt - start_pt)

            positive.lines.append(build_scan_line(pos_data, y, start_pt, xdir, half))
            neg_lines[rows - 1 - y] = build_scan_line(neg_data, rows - 1 - y, end_pt, -xdir, half)

        negative.lines = neg_lines
        return positive, negative

    @staticmethod
    def _normalize_weights(slots: List[Optional[DirectionData]]) -> List[DirectionData]:
        directions = [d for d in slots if d is not None]
        w_max = max(
            (p.w for d in directions for line in d.lines for p in line.points),
            default=0.0,
        )
        if w_max <= 0:
            return directions
        for d in directions:
            for line in d.lines:
                line.points = [type(p)(w=p.w / w_max, x=p.x) for p in line.points]
        return directions

    def _build_direction_index(self) -> np.ndarray:
        n = self._config.n_directions
        angles = np.radians(180.0 / n * np.arange(n))
        dirs = np.stack([np.cos(angles), np.sin(angles)], axis=1)
        dirs = np.concatenate([dirs, -dirs])

        buckets = np.arange(N_DIRECTION_BUCKETS) * math.pi / 180.0 - math.pi
        bucket_dirs = np.stack([np.cos(buckets), np.sin(buckets)], axis=1)
        return np.argmax(bucket_dirs @ dirs.T, axis=1).astype(np.int32)
