from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Iterable, Sequence, Tuple

import numpy as np


def _as_readonly(x, ndim: int, name: str) -> np.ndarray:
    arr = np.array(x, dtype=float)
    if ndim == 2:
        arr = np.atleast_2d(arr)
    else:
        arr = np.atleast_1d(arr).reshape(-1)
    if arr.ndim != ndim:
        raise ValueError(f"{name} must be {ndim}-dimensional, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


def _index_array(inds: Iterable[int], n: int, name: str) -> np.ndarray:
    inds = np.unique(np.asarray(list(inds), dtype=int))
    if inds.size and (inds.min() < 0 or inds.max() >= n):
        raise IndexError(f"{name} out of range for {n} shocks: {inds.tolist()}")
    return inds


def zero_anticipated_shocks(QQ, anticipated: Iterable[int]) -> np.ndarray:
    """
    Shock covariance with the anticipated-shock rows and columns zeroed.

    Only the block of ``QQ`` at the non-anticipated indices is kept, so any
    covariance between an anticipated and an unanticipated shock is dropped
    as well.  Applying the transform twice gives the same matrix.
    """
    QQ = np.atleast_2d(np.asarray(QQ, dtype=float))
    n = QQ.shape[0]
    if QQ.shape != (n, n):
        raise ValueError(f"QQ must be square, got {QQ.shape}")
    anticipated = _index_array(anticipated, n, "anticipated shock indices")
    keep = np.setdiff1d(np.arange(n), anticipated)

    QQ_pre = np.zeros_like(QQ)
    QQ_pre[np.ix_(keep, keep)] = QQ[np.ix_(keep, keep)]
    return QQ_pre


@dataclass(frozen=True, eq=False)
class System:
    """
    System matrices of a linear Gaussian state space model.

        s_t = CC + TT s_{t-1} + RR eps_t,    eps_t ~ N(0, QQ)
        y_t = DD + ZZ s_t + u_t,             u_t ~ N(0, HH)
    """

    CC: np.ndarray
    TT: np.ndarray
    RR: np.ndarray
    QQ: np.ndarray
    DD: np.ndarray
    ZZ: np.ndarray
    HH: np.ndarray

    def __post_init__(self):
        for name, ndim in [('CC', 1), ('TT', 2), ('RR', 2), ('QQ', 2),
                           ('DD', 1), ('ZZ', 2), ('HH', 2)]:
            object.__setattr__(self, name, _as_readonly(getattr(self, name), ndim, name))

        ns, ny, neps = self.ns, self.ny, self.neps
        expected = {'CC': (ns,), 'TT': (ns, ns), 'RR': (ns, neps), 'QQ': (neps, neps),
                    'DD': (ny,), 'ZZ': (ny, ns), 'HH': (ny, ny)}
        for name, shape in expected.items():
            if getattr(self, name).shape != shape:
                raise ValueError(f"{name} must have shape {shape}, got {getattr(self, name).shape}")

    @property
    def ns(self) -> int:
        return self.TT.shape[0]

    @property
    def ny(self) -> int:
        return self.ZZ.shape[0]

    @property
    def neps(self) -> int:
        return self.RR.shape[1]

    def __getitem__(self, key: str) -> np.ndarray:
        if key not in self.matrix_names():
            raise KeyError(key)
        return getattr(self, key)

    @classmethod
    def matrix_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def astuple(self) -> Tuple[np.ndarray, ...]:
        """``(CC, TT, RR, QQ, DD, ZZ, HH)``"""
        return tuple(getattr(self, name) for name in self.matrix_names())

    def with_QQ(self, QQ) -> "System":
        return replace(self, QQ=QQ)

    def pre_zlb(self, anticipated: Sequence[int]) -> "System":
        """The same system with the anticipated-shock variances switched off."""
        return self.with_QQ(zero_anticipated_shocks(self.QQ, anticipated))

    def __eq__(self, other) -> bool:
        if not isinstance(other, System):
            return NotImplemented
        return all(np.array_equal(a, b) for a, b in zip(self.astuple(), other.astuple()))
