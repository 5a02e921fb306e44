"""
Per-invocation autoscale options and their resolution into the complete
configuration of a pool.
"""

import attr

from tide.constants import (
    DEFAULT_HIGH_WATERMARK, DEFAULT_LOW_WATERMARK, DEFAULT_TAG_FORMAT)
from tide.scaling.errors import ConfigurationError
from tide.util.config import config_value


@attr.s(frozen=True)
class ScalingOptions(object):
    """
    Autoscale configuration given for one invocation. Every field is None
    when not given.

    :ivar int high_watermark: see :class:`ScalingConfig`
    :ivar int low_watermark: see :class:`ScalingConfig`
    :ivar int max_machines: see :class:`ScalingConfig`
    :ivar str machine_source: catalog name to provision machines from
    :ivar str tag: tag to mark owned machines with
    """
    high_watermark = attr.ib(default=None)
    low_watermark = attr.ib(default=None)
    max_machines = attr.ib(default=None)
    machine_source = attr.ib(default=None)
    tag = attr.ib(default=None)

    def has_updates(self):
        """
        :return: whether any configuration was given
        """
        return any(v is not None for v in attr.astuple(self))


@attr.s(frozen=True)
class ScalingConfig(object):
    """
    The resolved autoscale configuration of a pool.
    """
    tag = attr.ib()
    catalog_name = attr.ib()
    high_watermark = attr.ib()
    low_watermark = attr.ib()
    max_machines = attr.ib()


def _validate_watermarks(high, low):
    for name, value in (('high', high), ('low', low)):
        if not 1 <= value <= 100:
            raise ConfigurationError(
                "The {0} watermark must be between 1 and 100, got {1}".format(
                    name, value))
    if low >= high:
        raise ConfigurationError(
            "The low watermark ({0}) must be below the high watermark "
            "({1})".format(low, high))


def validate_options(options):
    """
    Check options on their own, before any pool is looked at.

    :param ScalingOptions options: the given options
    :raises: :class:`ConfigurationError`
    """
    given = (options.high_watermark is not None,
             options.low_watermark is not None)
    if any(given) and not all(given):
        raise ConfigurationError(
            "The high and low watermarks must be given together")
    if all(given):
        _validate_watermarks(options.high_watermark, options.low_watermark)
    if options.machine_source == '':
        raise ConfigurationError("The machine source cannot be empty")
    if options.tag == '':
        raise ConfigurationError("The tag cannot be empty")


def _first(*values):
    return next((v for v in values if v is not None), None)


def resolve_config(pool_name, options, record=None):
    """
    Merge the options over the pool's existing record, and then over the
    configured defaults.

    :param str pool_name: name of the pool
    :param ScalingOptions options: the given options
    :param MetadataRecord record: the pool's record, or None when the pool is
        being initialized
    :return: :class:`ScalingConfig`
    :raises: :class:`ConfigurationError`
    """
    validate_options(options)
    existing = record or _NoRecord

    catalog_name = _first(options.machine_source, existing.catalog_name)
    if catalog_name is None:
        raise ConfigurationError(
            "A machine source is required to start autoscaling pool "
            "{0}".format(pool_name))

    if options.high_watermark is not None:
        high, low = options.high_watermark, options.low_watermark
    elif record is not None:
        high, low = record.high_watermark, record.low_watermark
    else:
        high = config_value('defaults.highWatermark', DEFAULT_HIGH_WATERMARK)
        low = config_value('defaults.lowWatermark', DEFAULT_LOW_WATERMARK)
        _validate_watermarks(high, low)

    tag = _first(options.tag, existing.tag)
    if tag is None:
        tag = config_value('defaults.tagFormat', DEFAULT_TAG_FORMAT).format(
            pool=pool_name)

    return ScalingConfig(
        tag=tag,
        catalog_name=catalog_name,
        high_watermark=high,
        low_watermark=low,
        max_machines=_first(options.max_machines, existing.max_machines,
                            config_value('defaults.maxMachines'), 0))


class _NoRecord(object):
    catalog_name = tag = max_machines = None
