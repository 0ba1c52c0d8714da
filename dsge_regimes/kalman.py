"""
Kalman filter output over one or more regimes.

:class:`FilterResult` holds the period-by-period output of a filter run:

- ``loglh``: conditional log-likelihoods log p(y_t | y_{1:t-1}), shape (N,)
- ``s_pred``, ``P_pred``: s_{t|t-1} and P_{t|t-1}, shapes (N, Ns) and (N, Ns, Ns)
- ``s_filt``, ``P_filt``: s_{t|t} and P_{t|t}, same shapes
- ``s_0``, ``P_0``: state entering period 1 (e.g. the end of the presample)
- ``s_T``, ``P_T``: filtered state in the last period
- ``total_loglh``: log p(y_{1:N}), always the sum of ``loglh``

Arrays are time-first and read-only.  Results are sliced by 1-based
:class:`~dsge_regimes.regimes.RegimeRange` and joined with :func:`cat`.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as p

from .regimes import RegimePartition, RegimeRange


def _checked(x, shape, name: str) -> np.ndarray:
    arr = np.array(x, dtype=float)
    if arr.size == 0 and int(np.prod(shape)) == 0:
        arr = arr.reshape(shape)
    if arr.shape != tuple(shape):
        raise ValueError(f"{name} must have shape {tuple(shape)}, got {arr.shape}")
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class FilterResult:

    loglh: np.ndarray
    s_pred: np.ndarray
    P_pred: np.ndarray
    s_filt: np.ndarray
    P_filt: np.ndarray
    s_0: np.ndarray
    P_0: np.ndarray
    s_T: Optional[np.ndarray] = None
    P_T: Optional[np.ndarray] = None

    FIELDS = ('loglh', 's_pred', 'P_pred', 's_filt', 'P_filt',
              's_0', 'P_0', 's_T', 'P_T', 'total_loglh')

    def __post_init__(self):
        loglh = np.array(self.loglh, dtype=float).reshape(-1)
        s_0 = np.array(self.s_0, dtype=float).reshape(-1)
        nobs, ns = loglh.size, s_0.size

        checked = {
            'loglh': _checked(loglh, (nobs,), 'loglh'),
            's_pred': _checked(self.s_pred, (nobs, ns), 's_pred'),
            'P_pred': _checked(self.P_pred, (nobs, ns, ns), 'P_pred'),
            's_filt': _checked(self.s_filt, (nobs, ns), 's_filt'),
            'P_filt': _checked(self.P_filt, (nobs, ns, ns), 'P_filt'),
            's_0': _checked(s_0, (ns,), 's_0'),
            'P_0': _checked(self.P_0, (ns, ns), 'P_0'),
        }
        if self.s_T is None:
            s_T = checked['s_filt'][-1] if nobs else checked['s_0']
        else:
            s_T = np.array(self.s_T, dtype=float).reshape(-1)
        if self.P_T is None:
            P_T = checked['P_filt'][-1] if nobs else checked['P_0']
        else:
            P_T = self.P_T
        checked['s_T'] = _checked(s_T, (ns,), 's_T')
        checked['P_T'] = _checked(P_T, (ns, ns), 'P_T')

        for name, arr in checked.items():
            object.__setattr__(self, name, arr)

    @property
    def total_loglh(self) -> float:
        return float(np.sum(self.loglh))

    @property
    def ns(self) -> int:
        return self.s_0.shape[0]

    def __len__(self) -> int:
        return self.loglh.shape[0]

    def __getitem__(self, key):
        if isinstance(key, str):
            if key not in self.FIELDS:
                raise KeyError(key)
            return getattr(self, key)
        if isinstance(key, RegimeRange):
            return self.slice(key.first, key.last)
        if isinstance(key, (int, np.integer)):
            return self.slice(int(key), int(key))
        raise TypeError(f"FilterResult indices must be field names, periods or RegimeRanges, "
                        f"not {type(key).__name__}")

    def slice(self, first: int, last: int) -> "FilterResult":
        """
        Result restricted to periods ``first..last`` (1-based, inclusive).

        The initial and terminal states of the slice are the *filtered*
        states at ``first`` and ``last``.
        """
        first, last = int(first), int(last)
        if last < first:
            raise ValueError(f"Cannot slice the empty range {first}:{last}")
        if first < 1 or last > len(self):
            raise IndexError(f"Range {first}:{last} is outside 1:{len(self)}")

        inds = slice(first - 1, last)
        return FilterResult(self.loglh[inds],
                            self.s_pred[inds],
                            self.P_pred[inds],
                            self.s_filt[inds],
                            self.P_filt[inds],
                            self.s_filt[first - 1],
                            self.P_filt[first - 1],
                            self.s_filt[last - 1],
                            self.P_filt[last - 1])

    def split(self, partition: RegimePartition) -> List["FilterResult"]:
        """One slice per range of ``partition``."""
        if partition.nobs != len(self):
            raise ValueError(f"Partition covers {partition.nobs} periods, result has {len(self)}")
        return [self[r] for r in partition]

    def to_dataframes(self, index=None, state_names: Optional[Sequence[str]] = None) -> Dict[str, p.DataFrame]:
        """Log-likelihoods and predicted/filtered state means as DataFrames."""
        if state_names is None:
            state_names = ['state_' + str(i) for i in range(self.ns)]
        results = {}
        results['log_lik'] = p.DataFrame(self.loglh, columns=['log_lik'], index=index)
        results['predicted_states'] = p.DataFrame(self.s_pred, columns=state_names, index=index)
        results['filtered_states'] = p.DataFrame(self.s_filt, columns=state_names, index=index)
        return results

    def __eq__(self, other) -> bool:
        if not isinstance(other, FilterResult):
            return NotImplemented
        return all(np.array_equal(getattr(self, f), getattr(other, f)) for f in self.FIELDS)


def cat(k1: FilterResult, k2: FilterResult) -> FilterResult:
    """
    Join two results adjacent in time, ``k1`` first.

    Adjacency itself is the caller's responsibility; only dimensions are
    checked.
    """
    if k1.ns != k2.ns:
        raise ValueError(f"Cannot concatenate results with {k1.ns} and {k2.ns} states")

    return FilterResult(np.concatenate([k1.loglh, k2.loglh]),
                        np.concatenate([k1.s_pred, k2.s_pred], axis=0),
                        np.concatenate([k1.P_pred, k2.P_pred], axis=0),
                        np.concatenate([k1.s_filt, k2.s_filt], axis=0),
                        np.concatenate([k1.P_filt, k2.P_filt], axis=0),
                        k1.s_0,
                        k1.P_0,
                        k2.s_T,
                        k2.P_T)


def concatenate(results: Iterable[FilterResult]) -> FilterResult:
    """Fold :func:`cat` over ``results`` from left to right."""
    results = list(results)
    if not results:
        raise ValueError("Nothing to concatenate")
    return reduce(cat, results)


__all__ = ["FilterResult", "cat", "concatenate"]
