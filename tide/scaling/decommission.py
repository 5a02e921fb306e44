"""
Removing idle machines from a pool: the ``RemoveMachines`` and
``MonitorDeleteMachines`` states.
"""

import attr

from effect import Effect, Func
from effect.do import do, do_return

from tide.constants import TaskType
from tide.log.intents import err, msg
from tide.platform.intents import (
    RemoveAccounts, RemoveFromPool, RemoveMachineRecords, RemoveVMs,
    list_machines)
from tide.scaling.metadata import (
    CHECKPOINT_DETACHED, CHECKPOINT_DETACHING, State, save_record,
    state_name)
from tide.scaling.monitor import idle_machines
from tide.scaling.tasks import describe_failures, poll_task
from tide.util import timestamp


@do
def detach_machines(pool, record):
    """
    Take the machines of the ``detaching`` checkpoint out of the pool and the
    machine directory. Machines an earlier invocation already took out are
    skipped, and machines that got a session since they were chosen are
    kept.

    :return: Effect of the record with the ``detached`` checkpoint, holding
        only the machines that were taken out
    """
    chosen = set(record.checkpoint_items)
    owned = yield list_machines(tag=record.tag)
    present = [m for m in owned if m.name in chosen]
    busy = set(m.name for m in present
               if m.pool_name == pool.name and m.session_count > 0)
    if busy:
        yield msg('machines-kept', machines=sorted(busy))
    in_pool = [m.name for m in present
               if m.pool_name == pool.name and m.name not in busy]
    if in_pool:
        yield Effect(RemoveFromPool(pool.name, in_pool))
    in_directory = [m.name for m in present if m.name not in busy]
    if in_directory:
        yield Effect(RemoveMachineRecords(in_directory))

    detached = [(name, host) for name, host
                in zip(record.checkpoint_items, record.checkpoint_hosts)
                if name not in busy]
    yield msg('machines-detached', machines=[name for name, _ in detached])
    yield do_return(attr.evolve(
        record, checkpoint=CHECKPOINT_DETACHED,
        checkpoint_items=[name for name, _ in detached],
        checkpoint_hosts=[host for _, host in detached]))


@do
def remove_machines(pool, record):
    """
    Detach the idle machines, then start the task deleting their VMs.

    The chosen machines are written to the record with the ``detaching``
    checkpoint before anything is changed, and with the ``detached``
    checkpoint once they are out of the pool and the machine directory. An
    interrupted invocation resumes from the last checkpoint written, since
    detached machines cannot be found by listing the pool again.

    :return: Effect of the next :class:`MetadataRecord`
    """
    if record.checkpoint in (CHECKPOINT_DETACHING, CHECKPOINT_DETACHED):
        yield msg('resume-checkpoint', state=state_name(record.state),
                  checkpoint=record.checkpoint,
                  items=list(record.checkpoint_items))
    else:
        idle = yield idle_machines(pool.name, record.tag)
        if not idle:
            yield msg('no-idle-machines', load=record.last_load,
                      low_watermark=record.low_watermark, tag=record.tag)
            yield do_return(record.idle())
        record = attr.evolve(
            record, checkpoint=CHECKPOINT_DETACHING,
            checkpoint_items=[m.name for m in idle],
            checkpoint_hosts=[m.host_name for m in idle])
        yield save_record(pool.name, record)

    if record.checkpoint == CHECKPOINT_DETACHING:
        record = yield detach_machines(pool, record)
        if not record.checkpoint_items:
            yield do_return(record.idle())
        yield save_record(pool.name, record)

    host_names = list(record.checkpoint_hosts)
    task_id = yield Effect(
        RemoveVMs(record.provisioning_scheme_id, host_names))
    yield msg('decommission-requested', num_machines=len(host_names),
              task_id=task_id)
    now = yield Effect(Func(timestamp.now))
    yield do_return(record.transition(
        State.MONITOR_DELETE_MACHINES, pending_task_id=task_id,
        actions_taken=len(host_names), last_update_time=now,
        checkpoint='', checkpoint_items=[], checkpoint_hosts=[]))


@do
def delete_accounts(record, account_names):
    """
    Delete the identity accounts of removed machines from the directory.
    Failures are logged.
    """
    try:
        result = yield Effect(
            RemoveAccounts(record.identity_pool_id, account_names))
    except Exception:
        yield err(None, 'accounts-remove-failed',
                  num_failed=len(account_names), failures=account_names)
        yield do_return(None)
    if result.failed:
        yield msg('accounts-remove-failed', num_failed=len(result.failed),
                  failures=describe_failures(result.failed))
    if result.succeeded:
        yield msg('accounts-removed', accounts=list(result.succeeded))


@do
def monitor_delete_machines(pool, record):
    """
    Check whether the VM deletion task has finished, and when it has, delete
    the identity accounts of the deleted VMs.

    :return: Effect of the next :class:`MetadataRecord`
    """
    task = yield poll_task(record, TaskType.REMOVE)
    if task is None:
        yield do_return(record.idle())
    if task.active:
        yield do_return(record)

    if task.failed:
        yield msg('machines-remove-failed', num_failed=len(task.failed),
                  failures=describe_failures(task.failed))
    yield msg('decommission-complete', task_id=task.id,
              num_machines=len(task.items))
    accounts = [item.account_name for item in task.items]
    if accounts:
        yield delete_accounts(record, accounts)
    yield do_return(record.idle())
