"""
Polling the asynchronous task a pool is waiting on.
"""

from effect.do import do, do_return

from twisted.python.failure import Failure

from tide.log.intents import err, msg
from tide.platform.intents import get_task
from tide.scaling.errors import TaskTypeMismatchError


def describe_failures(failed):
    """
    :param failed: :class:`Failed` items
    :return: ``dict`` of item name to reason, for logging
    """
    return {f.item: f.reason for f in failed}


@do
def poll_task(record, expected_type):
    """
    Get the pending task of a pool.

    A task of another type than the state expects means the record is not
    describing the task it points at; that is logged as an error rather than
    raised, so the caller can return to ``MonitorUsage`` instead of polling
    the wrong task forever.

    :param MetadataRecord record: the pool's record
    :param expected_type: member of :class:`TaskType`
    :return: Effect of the :class:`Task`, or of None if it is of the wrong
        type
    """
    task = yield get_task(record.pending_task_id)
    if task.type != expected_type:
        mismatch = TaskTypeMismatchError(task.id, task.type, expected_type)
        yield err(Failure(mismatch), 'task-type-mismatch', task_id=task.id,
                  actual=task.type.name, expected=expected_type.name)
        yield do_return(None)
    if task.active:
        yield msg('task-active', task_id=task.id)
    yield do_return(task)
