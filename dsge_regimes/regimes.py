"""
Regime segmentation of an estimation sample.

A sample of ``T`` observation periods is partitioned into contiguous regimes,
1-based and inclusive at both ends, given a regime schedule: no switching, a
single zero-lower-bound (ZLB) switch, or a schedule of regime-switch dates
with the ZLB switch spliced in.  Each range is labelled with the scheduled
regime whose system matrices apply and whether it lies before the ZLB, which
is all the matrix selector needs to build one system per range.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .dates import PeriodsBetween, period_counter
from .logging_config import get_logger, warn_and_log

logger = get_logger("regimes")


class RegimeError(ValueError):
    """Invalid regime schedule or sample bounds."""


class InvalidStartDate(RegimeError):
    """The requested sample start precedes the presample start."""


class UnsupportedRegimeConfiguration(UserWarning):
    """A schedule the partition falls back on instead of handling in full."""


@dataclass(frozen=True)
class RegimeRange:
    """Periods ``first..last`` of a sample, inclusive, counted from 1."""

    first: int
    last: int

    def __post_init__(self):
        object.__setattr__(self, "first", int(self.first))
        object.__setattr__(self, "last", int(self.last))
        if self.first < 1:
            raise ValueError(f"Regime ranges start at period 1 or later, got {self.first}")
        if self.last < self.first - 1:
            raise ValueError(f"Invalid regime range {self.first}:{self.last}")

    def __len__(self) -> int:
        return self.last - self.first + 1

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.first, self.last + 1))

    def __contains__(self, t) -> bool:
        return self.first <= t <= self.last

    def __str__(self) -> str:
        return f"{self.first}:{self.last}"

    @property
    def slice(self) -> slice:
        """Zero-based slice selecting these periods from a time-first array."""
        return slice(self.first - 1, self.last)


@dataclass(frozen=True)
class RegimeLabel:
    scheduled: int  # 1-based index into the regime schedule
    pre_zlb: bool


@dataclass(frozen=True)
class RegimePartition:
    ranges: Tuple[RegimeRange, ...]
    labels: Tuple[RegimeLabel, ...]

    def __post_init__(self):
        object.__setattr__(self, "ranges", tuple(self.ranges))
        object.__setattr__(self, "labels", tuple(self.labels))
        if len(self.ranges) != len(self.labels):
            raise ValueError(f"{len(self.ranges)} ranges but {len(self.labels)} labels")
        check_partition(self.ranges, self.nobs)

    def __len__(self) -> int:
        return len(self.ranges)

    def __iter__(self) -> Iterator[RegimeRange]:
        return iter(self.ranges)

    def __getitem__(self, i) -> RegimeRange:
        return self.ranges[i]

    @property
    def nobs(self) -> int:
        return self.ranges[-1].last if self.ranges else 0

    @property
    def n_regimes(self) -> int:
        return len(self.ranges)

    def items(self) -> Iterator[Tuple[RegimeRange, RegimeLabel]]:
        return zip(self.ranges, self.labels)


class RegimeSchedule:
    """Base of the schedule variants consumed by :func:`regime_partition`."""

    @property
    def n_scheduled(self) -> int:
        return 1


@dataclass(frozen=True)
class NoSwitching(RegimeSchedule):
    presample_start: Any
    freq: str = 'Q'


@dataclass(frozen=True)
class ZlbOnly(RegimeSchedule):
    presample_start: Any
    zlb_start: Any
    freq: str = 'Q'


@dataclass(frozen=True)
class ScheduledWithZlb(RegimeSchedule):
    """
    Scheduled regime switches with a single ZLB switch spliced in.

    ``regime_dates`` maps the regime number (1, 2, ...) to the date the
    regime starts; a sequence is read as regimes 1, 2, ... in order.
    """

    presample_start: Any
    zlb_start: Any
    regime_dates: Union[Mapping[int, Any], Sequence[Any]]
    freq: str = 'Q'

    def __post_init__(self):
        dates = self.regime_dates
        if isinstance(dates, Mapping):
            keys = sorted(int(k) for k in dates.keys())
            if keys != list(range(1, len(keys) + 1)):
                raise RegimeError(f"Regime numbers must be 1, 2, ..., n; got {keys}")
            dates = [dates[k] for k in sorted(dates.keys(), key=int)]
        dates = tuple(dates)
        if not dates:
            raise RegimeError("ScheduledWithZlb needs at least one regime date")
        object.__setattr__(self, "regime_dates", dates)

    @property
    def n_scheduled(self) -> int:
        return len(self.regime_dates)


class SpliceCase(enum.Enum):
    LAST_REGIME = "last"          # no scheduled regime starts after the ZLB
    INTERIOR_REGIME = "interior"  # at least one full scheduled regime precedes the ZLB
    FIRST_REGIME = "first"        # the ZLB falls inside the first scheduled regime


def splice_case(regime_offsets: Sequence[int], zlb_offset: int) -> SpliceCase:
    """
    Classify where the ZLB boundary falls in a regime schedule.

    ``regime_offsets[i]`` is the number of periods from the sample start to
    the start of regime ``i + 1``.  The splice point is the first regime
    starting strictly after ``zlb_offset``.
    """
    i_splice = next((i for i, n in enumerate(regime_offsets, start=1) if n > zlb_offset), None)
    if i_splice is None:
        return SpliceCase.LAST_REGIME
    if i_splice > 2:
        return SpliceCase.INTERIOR_REGIME
    return SpliceCase.FIRST_REGIME


def check_partition(ranges: Sequence[RegimeRange], nobs: int) -> None:
    """Raise ``ValueError`` unless ``ranges`` cover ``1..nobs`` in order without gaps."""
    if len(ranges) == 0:
        raise ValueError("A regime partition has at least one range")
    if ranges[0].first != 1:
        raise ValueError(f"Partition starts at {ranges[0].first}, not 1")
    if ranges[-1].last != nobs:
        raise ValueError(f"Partition ends at {ranges[-1].last}, not {nobs}")
    for prev, nxt in zip(ranges[:-1], ranges[1:]):
        if nxt.first != prev.last + 1:
            raise ValueError(f"Ranges {prev} and {nxt} are not adjacent")
        if len(prev) == 0:
            raise ValueError(f"Empty range {prev} in a multi-regime partition")
    if len(ranges) > 1 and len(ranges[-1]) == 0:
        raise ValueError(f"Empty range {ranges[-1]} in a multi-regime partition")


def count_periods(data) -> int:
    """Sample length of ``data``, time-first, or ``data`` itself if it is an integer."""
    if isinstance(data, (int, np.integer)):
        nobs = int(data)
    else:
        shape = np.shape(data)
        if len(shape) == 0:
            raise ValueError("data must be an integer or have a time dimension")
        nobs = int(shape[0])
    if nobs < 0:
        raise ValueError(f"Sample length must be >= 0, got {nobs}")
    return nobs


def _trivial(nobs: int, label: RegimeLabel) -> RegimePartition:
    return RegimePartition((RegimeRange(1, nobs),), (label,))


def _zlb_only(nobs: int, k: int) -> RegimePartition:
    if 0 < k < nobs:
        return RegimePartition(
            (RegimeRange(1, k), RegimeRange(k + 1, nobs)),
            (RegimeLabel(1, True), RegimeLabel(1, False)),
        )
    return _trivial(nobs, RegimeLabel(1, k > 0))


def _scheduled_with_zlb(nobs: int, k: int, offsets: List[int]) -> RegimePartition:
    if any(b < a for a, b in zip(offsets[:-1], offsets[1:])):
        raise RegimeError(f"Regime dates must be non-decreasing, got offsets {offsets}")

    # Regimes starting at or before the sample start collapse onto period 1.
    first_regime = max((i for i, n in enumerate(offsets, start=1) if n <= 0), default=1)
    # Regime 1 is in effect from the sample start even when dated later.
    starts: Dict[int, int] = {1: first_regime}
    for i, n in enumerate(offsets, start=1):
        if 0 < n < nobs and i != starts[max(starts)]:
            starts[n + 1] = i

    if nobs == 0 or k <= 0:
        if len(starts) > 1:
            msg = (f"ZLB starts at or before the sample start (offset {k}); scheduled regime "
                   f"switches at periods {sorted(starts)[1:]} are ignored and the sample is "
                   "treated as a single post-ZLB regime")
            warn_and_log(logger, msg, UnsupportedRegimeConfiguration, stacklevel=3)
        return _trivial(nobs, RegimeLabel(first_regime, k > 0))

    logger.debug(f"Splicing ZLB at offset {k} into schedule {offsets}: {splice_case(offsets, k).value}")

    boundaries = set(starts)
    # A ZLB at or after the sample end keeps the scheduled ranges, all pre-ZLB,
    # rather than collapsing to a single 1..T range.
    if k < nobs:
        boundaries.add(k + 1)
    boundaries = sorted(boundaries)

    ranges, labels = [], []
    regime = first_regime
    for j, lo in enumerate(boundaries):
        hi = boundaries[j + 1] - 1 if j + 1 < len(boundaries) else nobs
        regime = starts.get(lo, regime)
        ranges.append(RegimeRange(lo, hi))
        labels.append(RegimeLabel(regime, hi <= k))
    return RegimePartition(tuple(ranges), tuple(labels))


def regime_partition(schedule: RegimeSchedule,
                     data,
                     start_date: Any = None,
                     periods_between: Optional[PeriodsBetween] = None) -> RegimePartition:
    """
    Partition the periods of ``data`` into regimes.

    Args:
        schedule: a :class:`NoSwitching`, :class:`ZlbOnly` or
            :class:`ScheduledWithZlb` schedule.
        data: time-first observations, or the number of periods ``T``.
        start_date: date of the first period of ``data``; defaults to the
            schedule's presample start.
        periods_between: ``f(a, b)`` giving the number of periods from ``a``
            to ``b``; defaults to pandas Period arithmetic at ``schedule.freq``.

    Returns:
        A :class:`RegimePartition` covering ``1..T``.

    Raises:
        InvalidStartDate: if ``start_date`` precedes the presample start.
    """
    nobs = count_periods(data)
    counter = periods_between or period_counter(schedule.freq)
    if start_date is None:
        start_date = schedule.presample_start

    if counter(schedule.presample_start, start_date) < 0:
        raise InvalidStartDate(
            f"Start date {start_date} must be >= presample start {schedule.presample_start}")

    if isinstance(schedule, NoSwitching):
        partition = _trivial(nobs, RegimeLabel(1, False))
    elif isinstance(schedule, ZlbOnly):
        partition = _zlb_only(nobs, counter(start_date, schedule.zlb_start))
    elif isinstance(schedule, ScheduledWithZlb):
        offsets = [counter(start_date, d) for d in schedule.regime_dates]
        partition = _scheduled_with_zlb(nobs, counter(start_date, schedule.zlb_start), offsets)
    else:
        raise TypeError(f"Unknown regime schedule {type(schedule).__name__}")

    logger.debug(f"{type(schedule).__name__} partition of {nobs} periods: "
                 f"{[str(r) for r in partition.ranges]}")
    return partition


def zlb_regime_indices(data,
                       presample_start: Any,
                       zlb_start: Any,
                       start_date: Any = None,
                       has_anticipated_shocks: bool = True,
                       freq: str = 'Q',
                       periods_between: Optional[PeriodsBetween] = None) -> List[RegimeRange]:
    """Pre- and post-ZLB index ranges, or the single range ``1..T``."""
    if has_anticipated_shocks:
        schedule = ZlbOnly(presample_start, zlb_start, freq)
    else:
        schedule = NoSwitching(presample_start, freq)
    return list(regime_partition(schedule, data, start_date, periods_between).ranges)


def zlb_plus_regime_indices(data,
                            presample_start: Any,
                            zlb_start: Any,
                            regime_dates: Union[Mapping[int, Any], Sequence[Any]],
                            start_date: Any = None,
                            freq: str = 'Q',
                            periods_between: Optional[PeriodsBetween] = None) -> List[RegimeRange]:
    """Index ranges of the scheduled regimes with the ZLB switch spliced in."""
    schedule = ScheduledWithZlb(presample_start, zlb_start, regime_dates, freq)
    return list(regime_partition(schedule, data, start_date, periods_between).ranges)


__all__ = ["RegimeError", "InvalidStartDate", "UnsupportedRegimeConfiguration",
           "RegimeRange", "RegimeLabel", "RegimePartition", "RegimeSchedule",
           "NoSwitching", "ZlbOnly", "ScheduledWithZlb", "SpliceCase", "splice_case",
           "check_partition", "count_periods", "regime_partition",
           "zlb_regime_indices", "zlb_plus_regime_indices"]
