"""Merge raw OCR detections into line-level text blocks.

OCR engines frequently split one visual line into several fragments (single
glyphs for CJK text, word pieces for Latin text).  This module regroups them
purely from geometry:

1. Each detection gets a direction (angle first, aspect ratio second).
2. Detections are swept top-to-bottom by vertical center; a detection joins
   the open row when it sits close enough to the row's latest member, else a
   new row opens.  This is a greedy single pass, not connected-components
   clustering: a row never reopens once closed.
3. Within a row, fragments are put in reading order and glued together
   depending on the gap between neighbours (no separator, a single space, or
   a new block for very sparse rows).
"""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from typing import List, Optional, Sequence

from ..config import DEFAULT_MERGING_CONFIG, MergingConfig
from ..models import Box, MergedBlock, MergeResult, RawDetection, TextDirection

logger = logging.getLogger(__name__)

# height / width above this marks a detection as vertical text
VERTICAL_ASPECT_RATIO_THRESHOLD = 1.5

# |angle| folded into [0, 180) within this many degrees of 90 is vertical
VERTICAL_ANGLE_TOLERANCE = 10.0

_MIN_EXTENT = 1e-9


def detect_direction(detection: RawDetection) -> TextDirection:
    """Classify a single detection as horizontal or vertical text."""
    angle = detection.angle
    if math.isfinite(angle):
        folded = abs(angle) % 180.0
        if abs(folded - 90.0) <= VERTICAL_ANGLE_TOLERANCE:
            return TextDirection.VERTICAL

    box = detection.box
    if box.height / max(box.width, _MIN_EXTENT) > VERTICAL_ASPECT_RATIO_THRESHOLD:
        return TextDirection.VERTICAL
    return TextDirection.HORIZONTAL


def majority_direction(directions: Sequence[TextDirection]) -> TextDirection:
    """Most common direction; ties go to whichever appears first."""
    if not directions:
        return TextDirection.HORIZONTAL
    counts = Counter(directions)
    best = max(counts.values())
    for direction in directions:
        if counts[direction] == best:
            return direction
    return directions[0]


def union_all(boxes: Sequence[Box]) -> Box:
    out = boxes[0]
    for b in boxes[1:]:
        out = out.union(b)
    return out


class TextMergerEngine:
    """Geometric merger turning OCR fragments into :class:`MergedBlock` lines.

    The engine is stateless; one instance can be shared between threads.
    """

    def merge(
        self,
        detections: Sequence[RawDetection],
        config: MergingConfig = DEFAULT_MERGING_CONFIG,
    ) -> List[MergedBlock]:
        """Merge detections into blocks ordered top-to-bottom, then in reading order.

        Args:
            detections: Raw OCR detections in pixel space
            config: Merging thresholds (see ``MERGING_PRESETS``)

        Returns:
            One MergedBlock per resulting line/block
        """
        if not detections:
            logger.debug("No detections to merge")
            return []

        started = time.perf_counter()
        directions = [detect_direction(d) for d in detections]

        blocks: List[MergedBlock]
        if len(detections) == 1:
            blocks = [MergedBlock.from_single_detection(detections[0], directions[0])]
        else:
            rows = self._cluster_rows(detections, config.y_tolerance)
            logger.debug("Row clustering: %d detections -> %d rows %s",
                         len(detections), len(rows), [len(r) for r in rows])

            blocks = []
            for row in rows:
                blocks.extend(self._merge_row(detections, directions, row, config))

        elapsed_ms = (time.perf_counter() - started) * 1_000
        self._log_stats(detections, blocks, elapsed_ms)
        return blocks

    def merge_with_stats(
        self,
        detections: Sequence[RawDetection],
        config: MergingConfig = DEFAULT_MERGING_CONFIG,
    ) -> MergeResult:
        """Same as :meth:`merge` but wrapped with detection/merge counts."""
        blocks = self.merge(detections, config)
        return MergeResult.create(blocks, list(detections))

    # ------------------------------------------------------------------
    # Row clustering
    # ------------------------------------------------------------------

    @staticmethod
    def _cluster_rows(detections: Sequence[RawDetection], y_tolerance: float) -> List[List[int]]:
        """Greedy sweep over vertical centers; returns rows as index lists."""
        order = sorted(
            range(len(detections)),
            key=lambda i: (detections[i].box.center_y, detections[i].box.center_x, i),
        )

        rows: List[List[int]] = []
        current = [order[0]]
        for idx in order[1:]:
            last = detections[current[-1]].box
            box = detections[idx].box
            threshold = y_tolerance * (last.height + box.height) / 2
            if abs(box.center_y - last.center_y) < threshold:
                current.append(idx)
            else:
                rows.append(current)
                current = [idx]
        rows.append(current)
        return rows

    # ------------------------------------------------------------------
    # Gap pass within a row
    # ------------------------------------------------------------------

    def _merge_row(
        self,
        detections: Sequence[RawDetection],
        directions: Sequence[TextDirection],
        row: List[int],
        config: MergingConfig,
    ) -> List[MergedBlock]:
        row_direction = majority_direction([directions[i] for i in row])
        vertical = row_direction == TextDirection.VERTICAL

        if vertical:
            ordered = sorted(row, key=lambda i: (detections[i].box.top, detections[i].box.left, i))
        else:
            ordered = sorted(row, key=lambda i: (detections[i].box.left, detections[i].box.top, i))

        # Mean fragment width stands in for the character width of the row.
        avg_char_width = sum(detections[i].box.width for i in ordered) / len(ordered)
        join_threshold = config.x_tolerance_factor * avg_char_width
        break_threshold = config.max_gap_factor * avg_char_width

        groups: List[List[int]] = []
        texts: List[List[str]] = []
        prev: Optional[int] = None

        for idx in ordered:
            if prev is None:
                groups.append([idx])
                texts.append([detections[idx].text])
                prev = idx
                continue

            gap = self._gap(detections[prev].box, detections[idx].box, vertical)
            if gap > break_threshold:
                groups.append([idx])
                texts.append([detections[idx].text])
            elif gap > join_threshold:
                groups[-1].append(idx)
                texts[-1].extend([" ", detections[idx].text])
            else:
                groups[-1].append(idx)
                texts[-1].append(detections[idx].text)
            prev = idx

        if len(groups) > 1:
            logger.debug("Sparse row split into %d blocks (break gap %.1f)", len(groups), break_threshold)

        return [
            self._build_block(detections, directions, members, "".join(parts))
            for members, parts in zip(groups, texts)
        ]

    @staticmethod
    def _gap(prev: Box, nxt: Box, vertical: bool) -> float:
        if vertical:
            return nxt.top - prev.bottom
        return nxt.left - prev.right

    @staticmethod
    def _build_block(
        detections: Sequence[RawDetection],
        directions: Sequence[TextDirection],
        members: List[int],
        text: str,
    ) -> MergedBlock:
        member_detections = [detections[i] for i in members]
        return MergedBlock(
            text=text,
            bounding_box=union_all([d.box for d in member_detections]),
            direction=majority_direction([directions[i] for i in members]),
            original_box_count=len(members),
            average_confidence=sum(d.confidence for d in member_detections) / len(members),
            original_detections=member_detections,
        )

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    @staticmethod
    def _log_stats(detections: Sequence[RawDetection], blocks: List[MergedBlock], elapsed_ms: float) -> None:
        multi = sum(1 for b in blocks if b.is_multi_box_merged)
        chars = sum(b.text_length for b in blocks)
        rate = len(blocks) / len(detections) if detections else 1.0
        logger.info(
            "Merged %d detections -> %d blocks (compression %.2f), %d multi-box, %d chars, %.1f ms",
            len(detections), len(blocks), rate, multi, chars, elapsed_ms,
        )


def merge_text(
    detections: Sequence[RawDetection],
    config: MergingConfig = DEFAULT_MERGING_CONFIG,
) -> List[MergedBlock]:
    """Convenience wrapper around :meth:`TextMergerEngine.merge`."""
    return TextMergerEngine().merge(detections, config)


def merge_text_with_stats(
    detections: Sequence[RawDetection],
    config: MergingConfig = DEFAULT_MERGING_CONFIG,
) -> MergeResult:
    """Convenience wrapper around :meth:`TextMergerEngine.merge_with_stats`."""
    return TextMergerEngine().merge_with_stats(detections, config)
