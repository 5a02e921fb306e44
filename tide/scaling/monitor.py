"""
The ``MonitorUsage`` state: measure the load of a pool and decide whether
it needs more or fewer machines.
"""

from effect.do import do, do_return

from tide.constants import MAX_LOAD_INDEX, SessionSupport
from tide.log.intents import msg
from tide.platform.intents import list_machines
from tide.scaling.metadata import State


@do
def compute_load(pool):
    """
    Measure the load of a pool as a percentage.

    Single-session pools are loaded by the proportion of their machines
    hosting a session. Multi-session pools are loaded by the average load
    index of their machines.

    :return: Effect of the load as a number, or None when the pool has no
        capacity
    """
    if pool.session_support == SessionSupport.MULTI_SESSION:
        machines = yield list_machines(pool_name=pool.name)
        if not machines:
            yield do_return(None)
        total = sum(m.load_index for m in machines)
        yield do_return(total * 100.0 / (MAX_LOAD_INDEX * len(machines)))
    if pool.total_machines == 0:
        yield do_return(None)
    yield do_return(pool.sessions * 100.0 / pool.total_machines)


def idle_machines(pool_name, tag):
    """
    :return: Effect of the owned machines in the pool that host no session
    """
    return list_machines(pool_name=pool_name, tag=tag, session_count=0)


def _percent(load):
    return int(round(load))


@do
def monitor_usage(pool, record):
    """
    Compare the load of the pool against its watermarks.

    :return: Effect of the next :class:`MetadataRecord`
    """
    load = yield compute_load(pool)
    if load is None:
        yield msg('pool-empty')
        yield do_return(record)

    yield msg('load-measured', load=_percent(load))

    if load > record.high_watermark:
        if record.max_machines > 0:
            owned = yield list_machines(tag=record.tag)
            if len(owned) >= record.max_machines:
                yield msg('capacity-cap-reached', load=_percent(load),
                          high_watermark=record.high_watermark,
                          owned=len(owned), max_machines=record.max_machines)
                yield do_return(record)
        yield msg('scale-up-needed', load=_percent(load),
                  high_watermark=record.high_watermark)
        yield do_return(record.transition(
            State.PROVISION_MACHINES, last_load=_percent(load)))

    if load < record.low_watermark:
        idle = yield idle_machines(pool.name, record.tag)
        if not idle:
            yield msg('no-idle-machines', load=_percent(load),
                      low_watermark=record.low_watermark, tag=record.tag)
            yield do_return(record)
        yield msg('scale-down-needed', load=_percent(load),
                  low_watermark=record.low_watermark, idle=len(idle))
        yield do_return(record.transition(
            State.REMOVE_MACHINES, last_load=_percent(load)))

    yield do_return(record)
