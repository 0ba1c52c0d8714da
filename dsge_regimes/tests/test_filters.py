import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from unittest import TestCase

import pandas as p
import pytest
from scipy.stats import norm

from dsge_regimes.filters import (filter_regimes, filter_system,
                                  unconditional_covariance, unconditional_mean)
from dsge_regimes.regime_matrices import zlb_regime_matrices
from dsge_regimes.regimes import NoSwitching, ZlbOnly, regime_partition
from dsge_regimes.system import System


def int_periods(a, b):
    return b - a


def ar1_system(rho, sigma):
    return System(CC=[0.0], TT=[[rho]], RR=[[1.0]], QQ=[[sigma**2]],
                  DD=[0.0], ZZ=[[1.0]], HH=[[0.0]])


def simulate_ar1(rho, sigma, nobs=200, seed=0):
    rng = np.random.default_rng(seed)
    y = np.zeros(nobs)
    y[0] = sigma / np.sqrt(1 - rho**2) * rng.normal()
    for t in range(1, nobs):
        y[t] = rho * y[t - 1] + sigma * rng.normal()
    return y


class TestAR1(TestCase):

    rho = 0.85
    sigma = 1.00

    def setUp(self):
        self.yy = simulate_ar1(self.rho, self.sigma)
        self.system = ar1_system(self.rho, self.sigma)

    def byhand(self, yy):
        yyhat = np.r_[0, self.rho * yy[:-1]]
        sig = self.sigma * np.ones_like(yyhat)
        sig[0] = sig[0] / np.sqrt(1. - self.rho**2)
        return norm.logpdf(yy, loc=yyhat, scale=sig)

    def test_ar1(self):
        partition = regime_partition(NoSwitching(0), self.yy.size, periods_between=int_periods)
        res = filter_regimes(self.yy, partition, [self.system])
        assert_allclose(res.loglh, self.byhand(self.yy))
        self.assertAlmostEqual(res.total_loglh, np.sum(self.byhand(self.yy)))

    def test_filtered_state_is_observation(self):
        P_0 = unconditional_covariance(self.system.TT, self.system.RR, self.system.QQ)
        res = filter_system(self.yy, self.system, [0.0], P_0)
        assert_allclose(res.s_filt[:, 0], self.yy)
        assert_allclose(res.P_filt, 0.0, atol=1e-12)
        assert_allclose(res.s_pred[1:, 0], self.rho * self.yy[:-1])

    def test_dataframe_input(self):
        P_0 = unconditional_covariance(self.system.TT, self.system.RR, self.system.QQ)
        res = filter_system(p.DataFrame(self.yy, columns=['y']), self.system, [0.0], P_0)
        assert_allclose(res.loglh, self.byhand(self.yy))

    def test_missing(self):
        P_0 = unconditional_covariance(self.system.TT, self.system.RR, self.system.QQ)
        res = filter_system(np.nan * self.yy, self.system, [0.0], P_0)
        self.assertAlmostEqual(res.total_loglh, 0.0)

        y = self.yy.copy()
        y[-2] = np.nan
        res = filter_system(y, self.system, [0.0], P_0)
        sig = self.sigma * np.ones_like(y)
        sig[0] = self.sigma / np.sqrt(1. - self.rho**2)
        yyhat = np.r_[0, self.rho * y[:-1]]
        byhand = norm.logpdf(y[:-2], loc=yyhat[:-2], scale=sig[:-2]).sum()
        byhand += norm.logpdf(y[-1], loc=self.rho**2 * y[-3], scale=np.sqrt(1 + self.rho**2) * self.sigma)
        self.assertAlmostEqual(res.total_loglh, byhand)

    def test_wrong_number_of_observables(self):
        with self.assertRaises(ValueError):
            filter_system(np.zeros((10, 2)), self.system, [0.0], [[1.0]])


class TestFilterRegimes(TestCase):

    def setUp(self):
        self.yy = simulate_ar1(0.7, 0.5, nobs=60, seed=3)
        self.system = ar1_system(0.7, 0.5)
        self.partition = regime_partition(ZlbOnly(0, 25), 60, periods_between=int_periods)

    def test_identical_systems_match_single_run(self):
        whole = regime_partition(NoSwitching(0), 60, periods_between=int_periods)
        single = filter_regimes(self.yy, whole, [self.system])
        split = filter_regimes(self.yy, self.partition, [self.system, self.system])
        assert_allclose(split.loglh, single.loglh)
        assert_allclose(split.s_filt, single.s_filt)
        assert_allclose(split.P_pred, single.P_pred)
        assert_array_equal(split.s_0, single.s_0)

    def test_state_handed_between_regimes(self):
        calls = []

        def recording_filter(y, system, s_0, P_0):
            calls.append((np.array(s_0), np.array(P_0)))
            return filter_system(y, system, s_0, P_0)

        res = filter_regimes(self.yy, self.partition, [self.system, self.system],
                             filter_func=recording_filter)
        self.assertEqual(len(calls), 2)
        assert_array_equal(calls[1][0], res.s_filt[24])
        assert_array_equal(calls[1][1], res.P_filt[24])

    def test_split_matches_regime_runs(self):
        res = filter_regimes(self.yy, self.partition, [self.system, self.system])
        first, second = res.split(self.partition)
        self.assertEqual(len(first), 25)
        self.assertAlmostEqual(first.total_loglh + second.total_loglh, res.total_loglh)

    def test_pre_zlb_regime_uses_zeroed_covariance(self):
        # observed state driven by one unanticipated and one anticipated shock
        system = System(CC=[0.0], TT=[[0.7]], RR=[[1.0, 1.0]], QQ=np.diag([0.25, 0.5]),
                        DD=[0.0], ZZ=[[1.0]], HH=[[0.1]])
        systems = zlb_regime_matrices(system, ZlbOnly(0, 25), 60, [1], periods_between=int_periods)
        res = filter_regimes(self.yy, self.partition, systems)

        pre = filter_system(self.yy[:25], systems[0], res.s_0, res.P_0)
        assert_allclose(res.loglh[:25], pre.loglh)
        assert_allclose(res.P_pred[1, 0, 0], 0.7**2 * res.P_filt[0, 0, 0] + 0.25)
        assert_allclose(res.P_pred[30, 0, 0], 0.7**2 * res.P_filt[29, 0, 0] + 0.75)

    def test_mismatched_inputs(self):
        with self.assertRaises(ValueError):
            filter_regimes(self.yy, self.partition, [self.system])
        with self.assertRaises(ValueError):
            filter_regimes(self.yy[:50], self.partition, [self.system, self.system])


def test_unconditional_moments():
    TT = np.array([[0.5, 0.1], [0.0, 0.3]])
    RR = np.eye(2)
    QQ = np.diag([1.0, 2.0])
    P = unconditional_covariance(TT, RR, QQ)
    assert_allclose(P, TT @ P @ TT.T + RR @ QQ @ RR.T)
    assert_allclose(P, P.T)

    CC = np.array([1.0, 0.5])
    mu = unconditional_mean(CC, TT)
    assert_allclose(mu, CC + TT @ mu)


@pytest.mark.parametrize('nobs', [0, 1, 5])
def test_short_samples(nobs):
    system = ar1_system(0.5, 1.0)
    partition = regime_partition(ZlbOnly(0, 2), nobs, periods_between=int_periods)
    res = filter_regimes(np.zeros((nobs, 1)), partition, [system] * len(partition))
    assert len(res) == nobs
    if nobs == 0:
        assert_array_equal(res.s_T, res.s_0)
