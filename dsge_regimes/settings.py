#!/usr/bin/env python3
"""
Regime settings of an estimation, read from YAML.

The settings live under ``estimation: regimes:`` in a model file:

    estimation:
      regimes:
        presample_start: 1959Q3
        zlb_start: 2008Q4
        frequency: Q
        shocks: [eg, eb, em, em_1, em_2]
        anticipated_shocks: [em_1, em_2]
        regime_dates:
          1: 1959Q3
          2: 1990Q1

The block is validated against ``schema/settings.yaml`` and turned into
explicit inputs for the regime partition and matrix selectors.
"""
from __future__ import annotations

from dataclasses import dataclass
from importlib.resources import files as ir_files
from typing import IO, Any, Dict, Mapping, Optional, Tuple, Union

import yaml
from cerberus import Validator

from .dates import PeriodsBetween, period_counter
from .logging_config import get_logger
from .regimes import NoSwitching, RegimeSchedule, ScheduledWithZlb, ZlbOnly


logger = get_logger("settings")


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a schema YAML by name from the packaged schema directory."""
    schema_text = (ir_files('dsge_regimes') / 'schema' / f"{schema_name}.yaml").read_text(encoding='utf-8')
    return yaml.safe_load(schema_text)


_VALIDATOR = None


def get_validator() -> Validator:
    global _VALIDATOR
    if _VALIDATOR is None:
        _VALIDATOR = Validator(load_schema('settings'), allow_unknown=True)
    return _VALIDATOR


def validate_data(data: Mapping[str, Any], validator: Validator) -> Dict[str, Any]:
    """
    Validate ``data`` against ``validator``'s schema.

    Returns:
        The normalized document, with schema defaults filled in.

    Raises:
        ValidationError: If the data fails to validate against the schema.
    """
    if not validator.validate(dict(data)):
        error_messages = '\n'.join([f'{field}: {error}' for field, error in validator.errors.items()])
        raise ValidationError(f"Validation failed: \n{error_messages}")
    return validator.document


@dataclass(frozen=True)
class RegimeSettings:
    presample_start: Any
    zlb_start: Any
    freq: str = 'Q'
    shocks: Tuple[str, ...] = ()
    anticipated_shocks: Tuple[str, ...] = ()
    regime_dates: Optional[Tuple[Any, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, 'shocks', tuple(self.shocks))
        object.__setattr__(self, 'anticipated_shocks', tuple(self.anticipated_shocks))
        unknown = [s for s in self.anticipated_shocks if s not in self.shocks]
        if unknown:
            raise ValidationError(f"Anticipated shocks {unknown} are not among the shocks {list(self.shocks)}")
        if isinstance(self.regime_dates, Mapping):
            keys = sorted(self.regime_dates.keys())
            if keys != list(range(1, len(keys) + 1)):
                raise ValidationError(f"regime_dates keys must be 1, 2, ..., n; got {keys}")
            object.__setattr__(self, 'regime_dates', tuple(self.regime_dates[k] for k in keys))

    @property
    def n_anticipated_shocks(self) -> int:
        return len(self.anticipated_shocks)

    @property
    def anticipated_indices(self) -> Tuple[int, ...]:
        """Positions of the anticipated shocks in the shock covariance matrix."""
        return tuple(self.shocks.index(s) for s in self.anticipated_shocks)

    @property
    def periods_between(self) -> PeriodsBetween:
        return period_counter(self.freq)

    def schedule(self) -> RegimeSchedule:
        if self.regime_dates:
            return ScheduledWithZlb(self.presample_start, self.zlb_start, self.regime_dates, self.freq)
        if self.n_anticipated_shocks > 0:
            return ZlbOnly(self.presample_start, self.zlb_start, self.freq)
        return NoSwitching(self.presample_start, self.freq)


def parse_settings(yaml_dict: Mapping[str, Any]) -> RegimeSettings:
    """Validate an already loaded model dictionary and extract its regime settings."""
    document = validate_data(yaml_dict, get_validator())
    block = document['estimation']['regimes']
    logger.debug(f"Regime settings: {block}")

    return RegimeSettings(presample_start=block['presample_start'],
                          zlb_start=block['zlb_start'],
                          freq=block['frequency'],
                          shocks=block['shocks'],
                          anticipated_shocks=block['anticipated_shocks'],
                          regime_dates=block['regime_dates'])


def read_settings(yaml_file: Union[str, IO[str], Mapping[str, Any]]) -> RegimeSettings:
    """
    Read regime settings from a YAML file, stream, or loaded dictionary.

    Raises:
        ValidationError: If the settings fail schema validation
    """
    if isinstance(yaml_file, Mapping):
        return parse_settings(yaml_file)

    if isinstance(yaml_file, str):
        logger.info(f"Reading regime settings from file: {yaml_file}")
        with open(yaml_file) as f:
            txt = f.read()
    else:
        logger.info("Reading regime settings from stream")
        txt = yaml_file.read()

    yaml_dict = yaml.safe_load(txt)
    if not isinstance(yaml_dict, Mapping):
        raise ValidationError("Settings file does not contain a mapping")

    try:
        return parse_settings(yaml_dict)
    except ValidationError as e:
        logger.error(f"Settings validation failed: {e}")
        raise


__all__ = ["ValidationError", "RegimeSettings", "load_schema", "get_validator",
           "validate_data", "parse_settings", "read_settings"]
