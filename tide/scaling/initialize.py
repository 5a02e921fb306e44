"""
Starting autoscaling of a pool, and changing its configuration later.
"""

import attr

from effect import Effect
from effect.do import do, do_return

from tide.constants import PROVISIONING_TYPE
from tide.log.intents import msg
from tide.platform.intents import (
    CreateTag, GetCatalog, GetIdentityPool, GetProvisioningScheme, GetTag)
from tide.platform.interface import NoSuchCatalogError
from tide.scaling.errors import ConfigurationError
from tide.scaling.metadata import MetadataRecord, State, save_record


@attr.s(frozen=True)
class MachineSource(object):
    """
    Where new machines of a pool come from.
    """
    catalog_name = attr.ib()
    provisioning_scheme_id = attr.ib()
    identity_pool_id = attr.ib()


@do
def validate_machine_source(pool, catalog_name):
    """
    Check that new machines for ``pool`` can be provisioned from the
    catalog.

    :param Pool pool: the pool being configured
    :param str catalog_name: name of the catalog
    :return: Effect of :class:`MachineSource`
    :raises: :class:`ConfigurationError`
    """
    try:
        catalog = yield Effect(GetCatalog(catalog_name))
    except NoSuchCatalogError:
        raise ConfigurationError(
            "Catalog {0} does not exist".format(catalog_name))

    if catalog.is_physical:
        raise ConfigurationError(
            "Catalog {0} holds physical machines".format(catalog_name))
    if catalog.provisioning_type != PROVISIONING_TYPE:
        raise ConfigurationError(
            "Catalog {0} is provisioned by {1}, not {2}".format(
                catalog_name, catalog.provisioning_type, PROVISIONING_TYPE))
    if catalog.session_support != pool.session_support:
        raise ConfigurationError(
            "Catalog {0} is {1} but pool {2} is {3}".format(
                catalog_name, catalog.session_support.name, pool.name,
                pool.session_support.name))
    if not catalog.provisioning_scheme_id:
        raise ConfigurationError(
            "Catalog {0} has no provisioning scheme".format(catalog_name))

    scheme = yield Effect(
        GetProvisioningScheme(catalog.provisioning_scheme_id))
    if scheme is None or not scheme.identity_pool_id:
        raise ConfigurationError(
            "Provisioning scheme {0} of catalog {1} has no identity "
            "pool".format(catalog.provisioning_scheme_id, catalog_name))

    identity_pool = yield Effect(GetIdentityPool(scheme.identity_pool_id))
    if identity_pool is None or not identity_pool.naming_scheme:
        raise ConfigurationError(
            "Identity pool {0} of catalog {1} has no naming scheme".format(
                scheme.identity_pool_id, catalog_name))

    yield do_return(MachineSource(catalog_name=catalog_name,
                                  provisioning_scheme_id=scheme.id,
                                  identity_pool_id=identity_pool.id))


@do
def register_tag(tag):
    """
    Create the tag that marks owned machines, unless it already exists.
    """
    existing = yield Effect(GetTag(tag))
    if existing is None:
        yield Effect(CreateTag(tag))
        yield msg('tag-created', tag=tag)
    else:
        yield msg('tag-already-exists', tag=tag)


@do
def initialize_pool(pool, config):
    """
    Start autoscaling a pool: validate its machine source, register its tag
    and write a fresh record in ``MonitorUsage``.

    :param Pool pool: the pool
    :param ScalingConfig config: its resolved configuration
    :return: Effect of the written :class:`MetadataRecord`
    """
    source = yield validate_machine_source(pool, config.catalog_name)
    yield register_tag(config.tag)
    record = MetadataRecord(
        state=State.MONITOR_USAGE,
        clean_exit=False,
        tag=config.tag,
        catalog_name=source.catalog_name,
        identity_pool_id=source.identity_pool_id,
        provisioning_scheme_id=source.provisioning_scheme_id,
        high_watermark=config.high_watermark,
        low_watermark=config.low_watermark,
        max_machines=config.max_machines)
    yield save_record(pool.name, record)
    yield msg('pool-initialized', high_watermark=config.high_watermark,
              low_watermark=config.low_watermark)
    yield do_return(record)


@do
def apply_config_updates(pool, record, config):
    """
    Change the configuration kept in a pool's record. The state and the
    in-flight task are left alone.

    :param Pool pool: the pool
    :param MetadataRecord record: its current record
    :param ScalingConfig config: the resolved new configuration
    :return: Effect of the written :class:`MetadataRecord`
    """
    changes = {}
    if config.catalog_name != record.catalog_name:
        source = yield validate_machine_source(pool, config.catalog_name)
        changes.update(
            catalog_name=source.catalog_name,
            identity_pool_id=source.identity_pool_id,
            provisioning_scheme_id=source.provisioning_scheme_id)
    if config.tag != record.tag:
        yield register_tag(config.tag)
    updated = attr.evolve(
        record, tag=config.tag, high_watermark=config.high_watermark,
        low_watermark=config.low_watermark,
        max_machines=config.max_machines, **changes)
    yield save_record(pool.name, updated)
    yield msg('pool-config-updated')
    yield do_return(updated)
