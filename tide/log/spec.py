"""
Expand logged message types into human readable messages.

Events are logged by message type::

    log.msg("provision-requested", num_machines=2, task_id="t1")

and the type is looked up in :data:`msg_types` to produce the message text,
which is then formatted with the event's own fields. The type itself is kept
in the event as ``tide_msg_type`` so that logs can be searched by it.
"""

from twisted.python.failure import Failure


# mapping from msg type -> message
msg_types = {
    # Keep these in alphabetical order so merges can be deterministic
    "accounts-create-failed": (
        "Failed to create {num_failed} identity accounts: {failures}"),
    "accounts-create-none": (
        "No identity accounts could be created in {identity_pool_id}; "
        "not provisioning"),
    "accounts-remove-failed": (
        "Failed to delete {num_failed} identity accounts: {failures}"),
    "accounts-removed": "Deleted identity accounts {accounts}",
    "capacity-cap-reached": (
        "Load {load}% is above the high watermark of {high_watermark}% but "
        "{owned} machines already reach the cap of {max_machines}"),
    "decommission-complete": "Task {task_id} deleted {num_machines} machines",
    "decommission-requested": (
        "Deleting {num_machines} machines in task {task_id}"),
    "load-measured": "Load of pool {pool} is {load}%",
    "machine-add-failed": "Failed to add {machine} to pool {pool}",
    "machine-register-failed": (
        "Failed to register {host_name} against catalog {catalog}"),
    "machine-tag-failed": (
        "Registered {machine} but failed to tag it with {tag}; it is not "
        "owned by autoscaling and must be removed by hand"),
    "machines-added": "Added {machines} to pool {pool}",
    "machines-create-failed": (
        "Failed to create {num_failed} machines: {failures}"),
    "machines-detached": "Removed {machines} from pool {pool}",
    "machines-kept": (
        "Keeping {machines} in pool {pool}: they got sessions since they "
        "were chosen for removal"),
    "machines-registered": "Registered {machines} against catalog {catalog}",
    "machines-remove-failed": (
        "Failed to delete {num_failed} machines: {failures}"),
    "no-idle-machines": (
        "Load {load}% is below the low watermark of {low_watermark}% but no "
        "idle machines carry tag {tag}"),
    "platform-request": "{method} {url} returned {code}",
    "pool-begin": (
        "Processing pool {pool} in state {state} "
        "(previous clean exit: {clean_exit})"),
    "pool-config-updated": "Updated autoscale configuration of pool {pool}",
    "pool-empty": "Pool {pool} has no capacity; nothing to monitor",
    "pool-end": "Finished pool {pool} in state {state}",
    "pool-fatal-error": "Error while processing pool {pool}",
    "pool-initialized": (
        "Initialized autoscaling of pool {pool} with watermarks "
        "{low_watermark}%-{high_watermark}%"),
    "pool-unclean-exit": (
        "Previous invocation on pool {pool} did not exit cleanly while in "
        "state {state}"),
    "pool-uninitialized": "Pool {pool} has no autoscale metadata",
    "provision-complete": "Task {task_id} created {num_machines} machines",
    "provision-failed": "Task {task_id} created no machines",
    "provision-not-needed": (
        "No machines to provision (computed {needed}, owned {owned})"),
    "provision-requested": (
        "Creating {num_machines} machines in task {task_id}"),
    "resume-checkpoint": (
        "Resuming {state} from checkpoint {checkpoint} with {items}"),
    "scale-down-needed": (
        "Load {load}% is below the low watermark of {low_watermark}%; "
        "{idle} idle machines can be removed"),
    "scale-up-needed": (
        "Load {load}% is above the high watermark of {high_watermark}%"),
    "scheduler-run-error": "Error while running scheduled autoscaling",
    "tag-already-exists": (
        "Tag {tag} already exists; machines carrying it will be treated as "
        "owned by autoscaling and may be removed"),
    "tag-created": "Created tag {tag}",
    "task-active": "Task {task_id} is still running",
    "task-type-mismatch": (
        "Task {task_id} is a {actual} task but a {expected} task was "
        "expected; returning to MonitorUsage"),
}


def error_event(event, failure, why):
    """
    Convert event to error with failure and why
    """
    return {"isError": True, "failure": failure,
            "why": why, "original_event": event, "message": ()}


def get_validated_event(event, specs=msg_types):
    """
    Expand the event's message type into its message text.

    Errors carry their type in ``why``; other events in ``message``. Events
    whose type is not in ``specs`` are passed through untouched.

    :return: the expanded event
    :raises: `ValueError` or `TypeError` if `event` is not valid
    """
    message = ''.join(event.get("message", []))
    error = event.get('isError', False)
    msg_type = event.get("why") if error else message

    if msg_type not in specs:
        return event

    event["tide_msg_type"] = msg_type
    if error:
        event["why"] = specs[msg_type]
    else:
        event["message"] = (specs[msg_type],)
    return event


def SpecificationObserverWrapper(observer,
                                 get_validated_event=get_validated_event):
    """
    Return observer that expands message types based on :data:`msg_types`
    and delegates to given observer.
    """
    def validating_observer(event_dict):
        try:
            speced_event = get_validated_event(event_dict)
        except (ValueError, TypeError):
            speced_event = error_event(
                event_dict, Failure(), "Error validating event")
        observer(speced_event)

    return validating_observer
