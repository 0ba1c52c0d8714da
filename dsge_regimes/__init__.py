"""
dsge_regimes: regime bookkeeping for Kalman filtering of state space models.

This package partitions an estimation sample into regimes (including a
zero-lower-bound regime in which anticipated shocks are switched off),
selects the system matrices for each regime, and slices and concatenates
the resulting Kalman filter output.
"""

# Configure logging first
from .logging_config import configure_logging, get_logger

from .regimes import (RegimeError,
                      InvalidStartDate,
                      UnsupportedRegimeConfiguration,
                      RegimeRange,
                      RegimeLabel,
                      RegimePartition,
                      NoSwitching,
                      ZlbOnly,
                      ScheduledWithZlb,
                      regime_partition,
                      zlb_regime_indices,
                      zlb_plus_regime_indices)

from .system import System, zero_anticipated_shocks
from .regime_matrices import (RegimeSystemsBuilder,
                              regime_systems,
                              zlb_regime_matrices,
                              zlb_plus_regime_matrices)

from .kalman import FilterResult, cat, concatenate
from .filters import filter_regimes, filter_system

from .settings import read_settings, RegimeSettings, ValidationError

__version__ = '0.1.0'
