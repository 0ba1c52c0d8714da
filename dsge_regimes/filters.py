"""
Kalman filtering over a regime partition.

``filter_regimes`` runs one filter per regime, starting each regime from the
previous regime's last filtered state, and concatenates the results.  Any
callable with the signature of :func:`filter_system` can stand in for the
filter.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np
import pandas as p
from numba import jit
from scipy.linalg import solve_discrete_lyapunov

from .kalman import FilterResult, concatenate
from .logging_config import get_logger
from .regimes import RegimePartition
from .system import System

logger = get_logger("filters")

FilterFunc = Callable[[np.ndarray, System, np.ndarray, np.ndarray], FilterResult]


@jit(nopython=True)
def kalman_filter(y, CC, TT, RR, QQ, DD, ZZ, HH, s_0, P_0):

    nobs, ny = y.shape
    ns = TT.shape[0]

    At = s_0.copy()
    Pt = P_0.copy()
    RQR = RR @ QQ @ RR.T

    loglh = np.zeros(nobs)
    s_pred = np.zeros((nobs, ns))
    P_pred = np.zeros((nobs, ns, ns))
    s_filt = np.zeros((nobs, ns))
    P_filt = np.zeros((nobs, ns, ns))

    for i in range(nobs):

        # forecast
        At = CC + TT @ At
        Pt = TT @ Pt @ TT.T + RQR
        Pt = 0.5 * (Pt + Pt.T)

        s_pred[i] = At
        P_pred[i] = Pt

        observed = ~np.isnan(y[i])
        nact = np.sum(observed)

        if nact > 0:
            Zt = ZZ[observed, :]
            yhat = Zt @ At + DD[observed]
            nut = y[i][observed] - yhat

            Ft = Zt @ Pt @ Zt.T + HH[observed, :][:, observed]
            Ft = 0.5 * (Ft + Ft.T)

            dFt = np.log(np.linalg.det(Ft))
            iFtnut = np.linalg.solve(Ft, nut)

            loglh[i] = (
                - 0.5 * nact * np.log(2 * np.pi)
                - 0.5 * dFt
                - 0.5 * np.dot(nut, iFtnut)
            )

            Kt = Pt @ Zt.T
            At = At + Kt @ iFtnut
            Pt = Pt - Kt @ np.linalg.solve(Ft, Kt.T)
            Pt = 0.5 * (Pt + Pt.T)

        s_filt[i] = At
        P_filt[i] = Pt

    return loglh, s_pred, P_pred, s_filt, P_filt


def _as_2d_array(y):
    if isinstance(y, p.DataFrame):
        return y.values.astype(float)
    arr = np.asarray(y, dtype=float)
    if arr.ndim == 1:
        return np.swapaxes(np.atleast_2d(arr), 0, 1)
    return arr


def unconditional_covariance(TT, RR, QQ) -> np.ndarray:
    """Stationary state covariance P solving P = TT P TT' + RR QQ RR'."""
    TT = np.asarray(TT, dtype=float)
    RQR = np.asarray(RR, dtype=float) @ np.asarray(QQ, dtype=float) @ np.asarray(RR, dtype=float).T
    P = solve_discrete_lyapunov(TT, RQR)
    return 0.5 * (P + P.T)


def unconditional_mean(CC, TT) -> np.ndarray:
    TT = np.asarray(TT, dtype=float)
    return np.linalg.solve(np.eye(TT.shape[0]) - TT, np.asarray(CC, dtype=float))


def filter_system(y, system: System, s_0, P_0) -> FilterResult:
    """Run :func:`kalman_filter` on time-first ``y`` and wrap the output."""
    y = np.ascontiguousarray(_as_2d_array(y))
    if y.shape[1] != system.ny:
        raise ValueError(f"Data has {y.shape[1]} observables, system has {system.ny}")

    mats = [np.array(m, dtype=float) for m in system.astuple()]
    s_0 = np.array(s_0, dtype=float).reshape(-1)
    P_0 = np.array(P_0, dtype=float)

    loglh, s_pred, P_pred, s_filt, P_filt = kalman_filter(y, *mats, s_0, P_0)
    return FilterResult(loglh, s_pred, P_pred, s_filt, P_filt, s_0, P_0)


def filter_regimes(y,
                   partition: RegimePartition,
                   systems: Sequence[System],
                   s_0: Optional[np.ndarray] = None,
                   P_0: Optional[np.ndarray] = None,
                   filter_func: FilterFunc = filter_system) -> FilterResult:
    """
    Filter ``y`` regime by regime and join the results.

    Args:
        y: time-first observations, (T, ny).
        partition: regime partition of ``1..T``.
        systems: one system per range of ``partition``.
        s_0, P_0: state entering period 1; default to the unconditional
            moments of the first regime's system.
        filter_func: ``f(y_regime, system, s_0, P_0) -> FilterResult``.
    """
    y = _as_2d_array(y)
    if partition.nobs != y.shape[0]:
        raise ValueError(f"Partition covers {partition.nobs} periods, data has {y.shape[0]}")
    systems = tuple(systems)
    if len(systems) != len(partition):
        raise ValueError(f"{len(partition)} regimes but {len(systems)} systems")

    if s_0 is None:
        s_0 = unconditional_mean(systems[0].CC, systems[0].TT)
    if P_0 is None:
        P_0 = unconditional_covariance(systems[0].TT, systems[0].RR, systems[0].QQ)

    results = []
    for regime_range, system in zip(partition, systems):
        result = filter_func(y[regime_range.slice], system, s_0, P_0)
        logger.debug(f"Regime {regime_range}: log likelihood {result.total_loglh:.6f}")
        s_0, P_0 = result.s_T, result.P_T
        results.append(result)

    return concatenate(results)


__all__ = ["kalman_filter", "unconditional_covariance", "unconditional_mean",
           "filter_system", "filter_regimes"]
