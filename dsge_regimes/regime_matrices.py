"""
System matrices for each regime of a partitioned sample.

The selectors read the labels of a :class:`~dsge_regimes.regimes.RegimePartition`:
every range takes the system of its scheduled regime, with the
anticipated-shock variances zeroed when the range lies before the ZLB.
Only ``QQ`` ever differs between a scheduled regime and its pre-ZLB variant.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .logging_config import get_logger
from .regimes import (NoSwitching, RegimePartition, RegimeSchedule, ScheduledWithZlb,
                      ZlbOnly, regime_partition)
from .system import System

logger = get_logger("regime_matrices")


class RegimeSystemsBuilder:
    """Append-only collection of per-regime systems."""

    def __init__(self, systems: Iterable[System] = ()):
        self._systems: List[System] = []
        for system in systems:
            self.append(system)

    def append(self, system: System) -> "RegimeSystemsBuilder":
        if not isinstance(system, System):
            raise TypeError(f"Expected a System, got {type(system).__name__}")
        if self._systems and (system.ns, system.ny, system.neps) != (
                self._systems[0].ns, self._systems[0].ny, self._systems[0].neps):
            raise ValueError("All regimes must share state, observable and shock dimensions")
        self._systems.append(system)
        return self

    def __len__(self) -> int:
        return len(self._systems)

    def build(self, n_regimes: Optional[int] = None) -> Tuple[System, ...]:
        """The collected systems, truncated to the first ``n_regimes`` if given."""
        if n_regimes is None:
            return tuple(self._systems)
        n_regimes = int(n_regimes)
        if n_regimes < 1:
            raise ValueError(f"n_regimes must be >= 1, got {n_regimes}")
        return tuple(self._systems[:n_regimes])


def regime_systems(partition: RegimePartition,
                   systems: Sequence[System],
                   anticipated: Sequence[int],
                   n_regimes: Optional[int] = None) -> Tuple[System, ...]:
    """
    One system per range of ``partition``.

    Args:
        partition: labelled regime partition.
        systems: one system per scheduled regime, in schedule order.
        anticipated: indices of the anticipated shocks in ``QQ``.
        n_regimes: keep only the first ``n_regimes`` systems.
    """
    systems = tuple(systems)
    needed = max(label.scheduled for label in partition.labels)
    if needed > len(systems):
        raise ValueError(f"Partition refers to scheduled regime {needed} but only "
                         f"{len(systems)} system(s) were supplied")

    pre_zlb: Dict[int, System] = {}
    builder = RegimeSystemsBuilder()
    for regime_range, label in partition.items():
        system = systems[label.scheduled - 1]
        if label.pre_zlb:
            if label.scheduled not in pre_zlb:
                pre_zlb[label.scheduled] = system.pre_zlb(anticipated)
            system = pre_zlb[label.scheduled]
        builder.append(system)
        logger.debug(f"Regime {regime_range}: scheduled regime {label.scheduled}"
                     f"{' (pre-ZLB)' if label.pre_zlb else ''}")
    return builder.build(n_regimes)


def zlb_regime_matrices(system: System,
                        schedule: RegimeSchedule,
                        data,
                        anticipated: Sequence[int],
                        start_date: Any = None,
                        periods_between=None) -> Tuple[System, ...]:
    """
    Pre- and post-ZLB systems built from a single post-ZLB ``system``.

    Returns one system when the sample has no pre-ZLB part (or the schedule
    does not switch), two otherwise; the count always matches
    :func:`~dsge_regimes.regimes.zlb_regime_indices` for the same inputs.
    """
    if not isinstance(schedule, (NoSwitching, ZlbOnly)):
        raise ValueError("zlb_regime_matrices takes a NoSwitching or ZlbOnly schedule; "
                         "use zlb_plus_regime_matrices for scheduled regimes")
    partition = regime_partition(schedule, data, start_date, periods_between)
    return regime_systems(partition, [system], anticipated)


def zlb_plus_regime_matrices(systems: Sequence[System],
                             schedule: ScheduledWithZlb,
                             data,
                             anticipated: Sequence[int],
                             start_date: Any = None,
                             n_regimes: Optional[int] = None,
                             periods_between=None) -> Tuple[System, ...]:
    """
    Systems for a regime schedule with the ZLB switch spliced in.

    ``systems`` holds one system per scheduled regime.  The scheduled regime
    straddling the ZLB contributes a pre-ZLB variant before its own system,
    and every scheduled regime wholly before the ZLB is replaced by its
    pre-ZLB variant.
    """
    if not isinstance(schedule, ScheduledWithZlb):
        raise ValueError("zlb_plus_regime_matrices takes a ScheduledWithZlb schedule")
    systems = tuple(systems)
    if len(systems) < 2:
        raise ValueError(f"Scheduled regimes need at least two systems, got {len(systems)}")
    if len(systems) != schedule.n_scheduled:
        raise ValueError(f"Schedule has {schedule.n_scheduled} regimes but "
                         f"{len(systems)} systems were supplied")
    partition = regime_partition(schedule, data, start_date, periods_between)
    return regime_systems(partition, systems, anticipated, n_regimes=n_regimes)


__all__ = ["RegimeSystemsBuilder", "regime_systems",
           "zlb_regime_matrices", "zlb_plus_regime_matrices"]
