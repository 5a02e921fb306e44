"""
Adding machines to a pool: the ``ProvisionMachines``, ``MonitorProvision``
and ``AddMachines`` states.
"""

import attr

from effect import Effect, Func
from effect.do import do, do_return

from tide.constants import MAX_LOAD_INDEX, SessionSupport, TaskType
from tide.log.intents import err, msg
from tide.platform.intents import (
    AddToPool, CreateAccounts, CreateVMs, RegisterMachine, TagMachine,
    get_task, list_machines)
from tide.scaling.metadata import (
    CHECKPOINT_REGISTERED, State, save_record, state_name)
from tide.scaling.tasks import describe_failures, poll_task
from tide.util import timestamp
from tide.util.fp import ceil_div


def machines_needed(pool, high_watermark, machines=()):
    """
    Compute how many machines must be added to bring the load of a pool down
    to its high watermark.

    :param Pool pool: the pool
    :param int high_watermark: the high watermark, in percent
    :param machines: the :class:`Machine` members of a multi-session pool;
        ignored for single-session pools
    :return: the number of machines, which is not positive when none are
        needed
    """
    if pool.session_support == SessionSupport.MULTI_SESSION:
        total_load = sum(m.load_index for m in machines)
        return ceil_div(
            total_load - high_watermark * len(machines) * 100,
            high_watermark * (MAX_LOAD_INDEX // 100))
    return ceil_div(
        100 * pool.sessions - pool.total_machines * high_watermark,
        high_watermark)


@do
def provision_machines(pool, record):
    """
    Create identity accounts for the machines the pool needs and start the
    task creating their VMs.

    :return: Effect of the next :class:`MetadataRecord`
    """
    machines = ()
    if pool.session_support == SessionSupport.MULTI_SESSION:
        machines = yield list_machines(pool_name=pool.name)
    needed = computed = machines_needed(pool, record.high_watermark, machines)

    owned = None
    if record.max_machines > 0:
        owned = len((yield list_machines(tag=record.tag)))
        needed = min(needed, record.max_machines - owned)

    if needed <= 0:
        yield msg('provision-not-needed', needed=computed, owned=owned)
        yield do_return(record.idle())

    result = yield Effect(CreateAccounts(record.identity_pool_id, needed))
    if result.failed:
        yield msg('accounts-create-failed', num_failed=len(result.failed),
                  failures=describe_failures(result.failed))
    if not result.succeeded:
        yield msg('accounts-create-none',
                  identity_pool_id=record.identity_pool_id)
        yield do_return(record.idle())

    accounts = list(result.succeeded)
    task_id = yield Effect(CreateVMs(record.provisioning_scheme_id, accounts))
    yield msg('provision-requested', num_machines=len(accounts),
              task_id=task_id)
    yield do_return(record.transition(
        State.MONITOR_PROVISION, pending_task_id=task_id,
        actions_taken=len(accounts)))


@do
def monitor_provision(pool, record):
    """
    Check whether the VM creation task has finished.

    :return: Effect of the next :class:`MetadataRecord`
    """
    task = yield poll_task(record, TaskType.CREATE)
    if task is None:
        yield do_return(record.idle())
    if task.active:
        yield do_return(record)

    if task.failed:
        yield msg('machines-create-failed', num_failed=len(task.failed),
                  failures=describe_failures(task.failed))
    if not task.items:
        yield msg('provision-failed', task_id=task.id)
        yield do_return(record.idle())

    yield msg('provision-complete', task_id=task.id,
              num_machines=len(task.items))
    yield do_return(record.transition(State.ADD_MACHINES))


@do
def register_machines(record, items):
    """
    Register the created VMs in the machine directory and tag them. A
    machine that fails either step is logged and left out.

    :param items: :class:`TaskItem` created by the task
    :return: Effect of the list of registered machine names
    """
    registered = []
    for item in items:
        try:
            name = yield Effect(RegisterMachine(
                record.catalog_name, item.account_name, item.host_name))
        except Exception:
            yield err(None, 'machine-register-failed',
                      host_name=item.host_name, catalog=record.catalog_name)
            continue
        try:
            yield Effect(TagMachine(record.tag, name))
        except Exception:
            # untagged machines are invisible to every tag query
            yield err(None, 'machine-tag-failed', machine=name,
                      host_name=item.host_name, tag=record.tag)
        else:
            registered.append(name)
    yield msg('machines-registered', machines=registered,
              catalog=record.catalog_name)
    yield do_return(registered)


@do
def add_to_pool(pool_name, machine_names):
    """
    Add registered machines to the pool. A machine that fails is logged and
    left out.

    :return: Effect of the list of added machine names
    """
    added = []
    for name in machine_names:
        try:
            yield Effect(AddToPool(pool_name, name))
        except Exception:
            yield err(None, 'machine-add-failed', machine=name)
        else:
            added.append(name)
    yield msg('machines-added', machines=added)
    yield do_return(added)


@do
def add_machines(pool, record):
    """
    Register the machines created by the pending task, then add them to the
    pool.

    Once registered, the machine names are written to the record with the
    ``registered`` checkpoint, so that an invocation interrupted before
    adding them resumes by adding them instead of registering them again.

    :return: Effect of the next :class:`MetadataRecord`
    """
    if record.checkpoint == CHECKPOINT_REGISTERED:
        yield msg('resume-checkpoint', state=state_name(record.state),
                  checkpoint=record.checkpoint,
                  items=list(record.checkpoint_items))
    else:
        task = yield get_task(record.pending_task_id)
        registered = yield register_machines(record, task.items)
        record = attr.evolve(record, checkpoint=CHECKPOINT_REGISTERED,
                             checkpoint_items=registered)
        yield save_record(pool.name, record)

    yield add_to_pool(pool.name, record.checkpoint_items)
    now = yield Effect(Func(timestamp.now))
    yield do_return(record.idle(last_update_time=now))
