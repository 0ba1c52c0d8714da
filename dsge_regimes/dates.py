"""
Calendar arithmetic on observation periods.

Dates are converted to ``pandas.Period`` objects at a fixed frequency
(quarterly by default) so that the distance between two dates is a whole
number of observation periods.
"""
from __future__ import annotations

from typing import Any, Callable

import pandas as pd


PeriodsBetween = Callable[[Any, Any], int]


def to_period(date: Any, freq: str = 'Q') -> pd.Period:
    """
    Convert ``date`` to a ``pandas.Period`` at frequency ``freq``.

    Accepts strings understood by pandas ('1959Q3', '2008-12-31'),
    ``datetime.date``/``pandas.Timestamp`` objects, and Periods. A Period
    with a different frequency is re-expressed at ``freq``.
    """
    if isinstance(date, pd.Period):
        return date.asfreq(freq, how='start')
    return pd.Period(date, freq=freq)


def subtract_periods(later: Any, earlier: Any, freq: str = 'Q') -> int:
    """Number of periods from ``earlier`` to ``later`` (negative if ``later`` comes first)."""
    return (to_period(later, freq) - to_period(earlier, freq)).n


def periods_between(date_a: Any, date_b: Any, freq: str = 'Q') -> int:
    """
    Number of periods from ``date_a`` to ``date_b``.

    ``periods_between(d, d) == 0`` and the result is increasing in ``date_b``.
    """
    return subtract_periods(date_b, date_a, freq=freq)


def period_counter(freq: str = 'Q') -> PeriodsBetween:
    """Return a two-argument ``periods_between`` bound to ``freq``."""
    def counter(date_a, date_b):
        return periods_between(date_a, date_b, freq=freq)
    return counter


__all__ = ["to_period", "subtract_periods", "periods_between", "period_counter"]
