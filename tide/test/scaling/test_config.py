"""
Tests for :mod:`tide.scaling.config`
"""

from twisted.trial.unittest import SynchronousTestCase

from tide.scaling.config import (
    ScalingConfig, ScalingOptions, resolve_config, validate_options)
from tide.scaling.errors import ConfigurationError
from tide.test.utils import record, set_config_for_test


class ScalingOptionsTests(SynchronousTestCase):
    """
    Tests for :class:`ScalingOptions` and :func:`validate_options`
    """

    def test_has_updates(self):
        """
        Options have updates when any of them is given.
        """
        self.assertFalse(ScalingOptions().has_updates())
        self.assertTrue(ScalingOptions(max_machines=0).has_updates())

    def test_valid(self):
        """
        Valid options are accepted.
        """
        validate_options(ScalingOptions())
        validate_options(ScalingOptions(high_watermark=100, low_watermark=1,
                                        machine_source='c', tag='t'))

    def test_invalid(self):
        """
        Watermarks given alone, out of range or inverted, and empty names,
        are rejected.
        """
        for options in [ScalingOptions(high_watermark=80),
                        ScalingOptions(low_watermark=20),
                        ScalingOptions(high_watermark=101, low_watermark=20),
                        ScalingOptions(high_watermark=80, low_watermark=0),
                        ScalingOptions(high_watermark=50, low_watermark=50),
                        ScalingOptions(high_watermark=20, low_watermark=80),
                        ScalingOptions(machine_source=''),
                        ScalingOptions(tag='')]:
            self.assertRaises(ConfigurationError, validate_options, options)


class ResolveConfigTests(SynchronousTestCase):
    """
    Tests for :func:`resolve_config`
    """

    def test_defaults(self):
        """
        A new pool gets the default watermarks and a tag named after it.
        """
        self.assertEqual(
            resolve_config('p1', ScalingOptions(machine_source='c')),
            ScalingConfig(tag='tide-autoscale-p1', catalog_name='c',
                          high_watermark=80, low_watermark=20,
                          max_machines=0))

    def test_configured_defaults(self):
        """
        Defaults can be changed in the configuration.
        """
        set_config_for_test(self, {'defaults': {
            'highWatermark': 90, 'lowWatermark': 10,
            'tagFormat': 'auto-{pool}', 'maxMachines': 8}})
        self.assertEqual(
            resolve_config('p1', ScalingOptions(machine_source='c')),
            ScalingConfig(tag='auto-p1', catalog_name='c',
                          high_watermark=90, low_watermark=10,
                          max_machines=8))

    def test_invalid_configured_defaults(self):
        """
        Invalid configured watermarks are rejected.
        """
        set_config_for_test(self, {'defaults': {'lowWatermark': 85}})
        self.assertRaises(ConfigurationError, resolve_config, 'p1',
                          ScalingOptions(machine_source='c'))

    def test_machine_source_required(self):
        """
        A new pool cannot be autoscaled without a machine source.
        """
        self.assertRaises(ConfigurationError, resolve_config, 'p1',
                          ScalingOptions())

    def test_record_is_kept(self):
        """
        What is not given is taken from the existing record.
        """
        self.assertEqual(
            resolve_config('pool1', ScalingOptions(max_machines=4),
                           record(high_watermark=70, low_watermark=30)),
            ScalingConfig(tag='tide-autoscale-pool1', catalog_name='cat1',
                          high_watermark=70, low_watermark=30,
                          max_machines=4))

    def test_options_override_record(self):
        """
        Given options win over the existing record.
        """
        self.assertEqual(
            resolve_config(
                'pool1',
                ScalingOptions(high_watermark=60, low_watermark=40,
                               machine_source='cat2', tag='mine'),
                record(max_machines=3)),
            ScalingConfig(tag='mine', catalog_name='cat2',
                          high_watermark=60, low_watermark=40,
                          max_machines=3))
