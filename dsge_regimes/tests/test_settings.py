from io import StringIO
from unittest import TestCase

import pytest

from dsge_regimes.regimes import (NoSwitching, RegimeRange, ScheduledWithZlb, ZlbOnly,
                                  regime_partition)
from dsge_regimes.settings import (RegimeSettings, ValidationError, load_schema,
                                   read_settings)


full_yaml = """
declarations:
  name: nkmp
estimation:
  data: nkmp.txt
  regimes:
    presample_start: 2000Q1
    zlb_start: 2003Q1
    frequency: Q
    shocks: [eg, eb, em, em_1, em_2]
    anticipated_shocks: [em_1, em_2]
    regime_dates:
      1: 2000Q1
      2: 2002Q1
"""

zlb_yaml = """
estimation:
  regimes:
    presample_start: 2000Q1
    zlb_start: 2003Q1
    shocks: [eg, em, em_1]
    anticipated_shocks: [em_1]
"""

plain_yaml = """
estimation:
  regimes:
    presample_start: 2000-01-01
    zlb_start: 2003Q1
"""


class TestReadSettings(TestCase):

    def test_schema_loads(self):
        schema = load_schema('settings')
        self.assertIn('regimes', schema['estimation']['schema'])

    def test_full(self):
        settings = read_settings(StringIO(full_yaml))
        self.assertEqual(settings.freq, 'Q')
        self.assertEqual(settings.n_anticipated_shocks, 2)
        self.assertEqual(settings.anticipated_indices, (3, 4))
        self.assertEqual(settings.regime_dates, ('2000Q1', '2002Q1'))

        schedule = settings.schedule()
        self.assertIsInstance(schedule, ScheduledWithZlb)
        self.assertEqual(schedule.n_scheduled, 2)

    def test_full_partition(self):
        settings = read_settings(StringIO(full_yaml))
        partition = regime_partition(settings.schedule(), 20,
                                     periods_between=settings.periods_between)
        self.assertEqual(partition.ranges,
                         (RegimeRange(1, 8), RegimeRange(9, 12), RegimeRange(13, 20)))

    def test_zlb_only(self):
        settings = read_settings(StringIO(zlb_yaml))
        self.assertIsNone(settings.regime_dates)
        self.assertEqual(settings.anticipated_indices, (2,))
        self.assertIsInstance(settings.schedule(), ZlbOnly)

    def test_defaults(self):
        settings = read_settings(StringIO(plain_yaml))
        self.assertEqual(settings.freq, 'Q')
        self.assertEqual(settings.shocks, ())
        self.assertEqual(settings.anticipated_indices, ())
        self.assertIsInstance(settings.schedule(), NoSwitching)

        partition = regime_partition(settings.schedule(), 12, start_date='2001Q1')
        self.assertEqual(partition.ranges, (RegimeRange(1, 12),))

    def test_mapping_input(self):
        import yaml
        settings = read_settings(yaml.safe_load(zlb_yaml))
        self.assertEqual(settings, read_settings(StringIO(zlb_yaml)))

    def test_missing_required(self):
        txt = zlb_yaml.replace("    zlb_start: 2003Q1\n", "")
        with self.assertRaises(ValidationError):
            read_settings(StringIO(txt))

    def test_unknown_regime_key(self):
        txt = zlb_yaml + "    zlb_end: 2015Q4\n"
        with self.assertRaises(ValidationError):
            read_settings(StringIO(txt))

    def test_bad_frequency(self):
        txt = zlb_yaml + "    frequency: W\n"
        with self.assertRaises(ValidationError):
            read_settings(StringIO(txt))

    def test_annual_alias_rejected(self):
        with self.assertRaises(ValidationError):
            read_settings(StringIO(zlb_yaml + "    frequency: A\n"))

    def test_annual_frequency(self):
        txt = zlb_yaml.replace("2000Q1", "'2000'").replace("2003Q1", "'2003'") + "    frequency: Y\n"
        settings = read_settings(StringIO(txt))
        partition = regime_partition(settings.schedule(), 10,
                                     periods_between=settings.periods_between)
        self.assertEqual(partition.ranges, (RegimeRange(1, 3), RegimeRange(4, 10)))

    def test_unknown_anticipated_shock(self):
        txt = zlb_yaml.replace("[em_1]", "[em_4]")
        with self.assertRaises(ValidationError):
            read_settings(StringIO(txt))

    def test_regime_date_keys(self):
        txt = full_yaml.replace("      2: 2002Q1", "      3: 2002Q1")
        with self.assertRaises(ValidationError):
            read_settings(StringIO(txt))

    def test_not_a_mapping(self):
        with self.assertRaises(ValidationError):
            read_settings(StringIO("- a\n- b\n"))


def test_read_from_file(tmp_path):
    model_file = tmp_path / 'model.yaml'
    model_file.write_text(full_yaml)
    settings = read_settings(str(model_file))
    assert settings.anticipated_shocks == ('em_1', 'em_2')


def test_settings_dataclass_validates():
    with pytest.raises(ValidationError):
        RegimeSettings('2000Q1', '2003Q1', shocks=['eg'], anticipated_shocks=['em'])
    settings = RegimeSettings('2000Q1', '2003Q1', regime_dates={2: '2001Q1', 1: '2000Q1'})
    assert settings.regime_dates == ('2000Q1', '2001Q1')
