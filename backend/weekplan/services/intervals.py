from __future__ import annotations

from collections.abc import Iterable

from weekplan.services.schedule_types import BusinessWindow, GapInterval, Interval, RawBlock


def parse_block(block: RawBlock) -> Interval | None:
    # Partial typing must never raise; incomplete or inverted entries simply yield nothing.
    if not block.is_complete:
        return None
    if not all(part.isdecimal() for part in block.fields):
        return None
    start_hour, start_minute, end_hour, end_minute = (int(part) for part in block.fields)
    start = start_hour * 60 + start_minute
    end = end_hour * 60 + end_minute
    if start >= end:
        return None
    return Interval(start, end)


def normalize_intervals(intervals: Iterable[Interval], window: BusinessWindow) -> tuple[Interval, ...]:
    clipped = [item for item in (window.clip(interval) for interval in intervals) if item is not None]
    clipped.sort(key=lambda item: (item.start, item.end))

    merged: list[Interval] = []
    for current in clipped:
        if merged and merged[-1].touches_or_overlaps(current):
            previous = merged[-1]
            merged[-1] = Interval(previous.start, max(previous.end, current.end))
        else:
            merged.append(current)
    return tuple(merged)


def normalize_blocks(blocks: Iterable[RawBlock], window: BusinessWindow) -> tuple[Interval, ...]:
    parsed = (parse_block(block) for block in blocks)
    return normalize_intervals((item for item in parsed if item is not None), window)


def compute_gaps(busy: Iterable[Interval], window: BusinessWindow) -> tuple[GapInterval, ...]:
    gaps: list[GapInterval] = []
    cursor = window.start
    for interval in busy:
        if cursor < interval.start:
            gaps.append(GapInterval(Interval(cursor, interval.start)))
        cursor = max(cursor, interval.end)
    if cursor < window.end:
        gaps.append(GapInterval(Interval(cursor, window.end)))
    return tuple(gaps)


def carry_over_labels(
    gaps: Iterable[GapInterval],
    prior: Iterable[GapInterval],
) -> tuple[GapInterval, ...]:
    labels: dict[tuple[int, int], str | None] = {}
    for item in prior:
        key = (item.interval.start, item.interval.end)
        if key not in labels or not (labels[key] or "").strip():
            labels[key] = item.label
    return tuple(
        GapInterval(gap.interval, labels.get((gap.interval.start, gap.interval.end), gap.label))
        for gap in gaps
    )


def total_minutes(intervals: Iterable[Interval]) -> int:
    return sum(item.minutes for item in intervals)
