"""
Run one step of the autoscaling state machine of each pool.

Every invocation moves each pool along by running exactly one state
handler. Handlers never wait for asynchronous work: a pool waiting on a
task stays in its state until a later invocation sees the task finished.
"""

import attr

from effect.do import do, do_return

from tide.constants import METADATA_PREFIX
from tide.log.intents import err, msg, trivial, with_log
from tide.scaling.config import resolve_config, validate_options
from tide.scaling.decommission import monitor_delete_machines, remove_machines
from tide.scaling.errors import ConfigurationError, CorruptMetadataError
from tide.scaling.initialize import apply_config_updates, initialize_pool
from tide.scaling.metadata import State, load_record, save_record, state_name
from tide.scaling.monitor import monitor_usage
from tide.scaling.provision import (
    add_machines, monitor_provision, provision_machines)


HANDLERS = {
    State.MONITOR_USAGE: monitor_usage,
    State.PROVISION_MACHINES: provision_machines,
    State.MONITOR_PROVISION: monitor_provision,
    State.ADD_MACHINES: add_machines,
    State.REMOVE_MACHINES: remove_machines,
    State.MONITOR_DELETE_MACHINES: monitor_delete_machines,
}


@do
def _process_pool(pool_name, options, handlers):
    pool, record = yield load_record(pool_name)
    if record is None:
        yield msg('pool-uninitialized')
        yield initialize_pool(pool, resolve_config(pool_name, options))
    else:
        yield trivial('pool-begin', state=state_name(record.state),
                      clean_exit=record.clean_exit)
        if not record.clean_exit:
            yield msg('pool-unclean-exit', state=state_name(record.state))
        if options.has_updates():
            yield apply_config_updates(
                pool, record, resolve_config(pool_name, options, record))

    # initialization and updates write the record, so it is read again
    pool, record = yield load_record(pool_name)
    if record is None:
        raise CorruptMetadataError(METADATA_PREFIX + 'state', None)

    record = attr.evolve(record, clean_exit=False)
    yield save_record(pool_name, record)
    result = yield handlers[record.state](pool, record)
    result = attr.evolve(result, clean_exit=True)
    yield save_record(pool_name, result)
    yield trivial('pool-end', state=state_name(result.state))
    yield do_return(result)


def process_pool(pool_name, options, handlers=HANDLERS):
    """
    Run one step of the autoscaling of a pool, initializing it first if it
    has never been autoscaled.

    :param str pool_name: name of the pool
    :param ScalingOptions options: configuration given for this invocation
    :return: Effect of the pool's resulting :class:`MetadataRecord`
    """
    return with_log(_process_pool(pool_name, options, handlers),
                    pool=pool_name)


@do
def process_pools(pool_names, options):
    """
    Process each pool in turn. An error while processing one pool is logged
    and does not stop the others.

    :param list pool_names: names of the pools
    :param ScalingOptions options: configuration given for this invocation
    :return: Effect of ``dict`` of pool name to its resulting
        :class:`MetadataRecord`, or None if processing it failed
    :raises: :class:`ConfigurationError` if options are invalid, or are
        given for more than one pool
    """
    validate_options(options)
    if len(pool_names) > 1 and options.has_updates():
        raise ConfigurationError(
            "Configuration can only be changed on one pool at a time")

    results = {}
    for pool_name in pool_names:
        try:
            results[pool_name] = yield process_pool(pool_name, options)
        except Exception:
            yield err(None, 'pool-fatal-error', pool=pool_name)
            results[pool_name] = None
    yield do_return(results)
