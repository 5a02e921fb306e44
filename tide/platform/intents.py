"""
Effect intents for every platform operation tide performs, and the
dispatcher that performs them against an :class:`IPlatform` provider.

Scaling code only ever yields these intents, which keeps it testable as a
sequence of intents and independent of how the platform is reached.
"""

import attr

from effect import Effect, TypeDispatcher

from txeffect import deferred_performer

from tide.constants import ACCOUNT_REMOVAL_OPTION
from tide.log.intents import merge_effectful_fields


@attr.s
class GetPool(object):
    """Get a :class:`Pool` by name."""
    pool_name = attr.ib()


@attr.s
class SetPoolMetadata(object):
    """Set keys of a pool's metadata map."""
    pool_name = attr.ib()
    items = attr.ib()


@attr.s
class ListMachines(object):
    """List machines, filtered by pool, tag and session count."""
    pool_name = attr.ib(default=None)
    tag = attr.ib(default=None)
    session_count = attr.ib(default=None)


@attr.s
class GetTag(object):
    name = attr.ib()


@attr.s
class CreateTag(object):
    name = attr.ib()


@attr.s
class GetCatalog(object):
    catalog_name = attr.ib()


@attr.s
class GetProvisioningScheme(object):
    scheme_id = attr.ib()


@attr.s
class GetIdentityPool(object):
    identity_pool_id = attr.ib()


@attr.s
class CreateAccounts(object):
    """Create ``count`` new identity accounts in an identity pool."""
    identity_pool_id = attr.ib()
    count = attr.ib()


@attr.s
class RemoveAccounts(object):
    """Remove identity accounts, deleting them from the directory."""
    identity_pool_id = attr.ib()
    account_names = attr.ib()
    removal_option = attr.ib(default=ACCOUNT_REMOVAL_OPTION)


@attr.s
class CreateVMs(object):
    """Start a task creating one VM per identity account."""
    scheme_id = attr.ib()
    account_names = attr.ib()


@attr.s
class RemoveVMs(object):
    """Start a task deleting VMs by host name."""
    scheme_id = attr.ib()
    host_names = attr.ib()


@attr.s
class GetTask(object):
    task_id = attr.ib()


@attr.s
class RegisterMachine(object):
    """Add a machine record to the machine directory."""
    catalog_name = attr.ib()
    machine_name = attr.ib()
    host_name = attr.ib()


@attr.s
class TagMachine(object):
    tag = attr.ib()
    machine_name = attr.ib()


@attr.s
class AddToPool(object):
    pool_name = attr.ib()
    machine_name = attr.ib()


@attr.s
class RemoveFromPool(object):
    pool_name = attr.ib()
    machine_names = attr.ib()


@attr.s
class RemoveMachineRecords(object):
    """Remove machines from the machine directory."""
    machine_names = attr.ib()


def get_pool(pool_name):
    """Return Effect of :class:`GetPool`."""
    return Effect(GetPool(pool_name))


def list_machines(pool_name=None, tag=None, session_count=None):
    """Return Effect of :class:`ListMachines`."""
    return Effect(ListMachines(pool_name=pool_name, tag=tag,
                               session_count=session_count))


def get_task(task_id):
    """Return Effect of :class:`GetTask`."""
    return Effect(GetTask(task_id))


_PLATFORM_CALLS = {
    GetPool: lambda p, i: p.get_pool(i.pool_name),
    SetPoolMetadata: lambda p, i: p.set_pool_metadata(i.pool_name, i.items),
    ListMachines: lambda p, i: p.list_machines(
        pool_name=i.pool_name, tag=i.tag, session_count=i.session_count),
    GetTag: lambda p, i: p.get_tag(i.name),
    CreateTag: lambda p, i: p.create_tag(i.name),
    GetCatalog: lambda p, i: p.get_catalog(i.catalog_name),
    GetProvisioningScheme: lambda p, i: p.get_provisioning_scheme(
        i.scheme_id),
    GetIdentityPool: lambda p, i: p.get_identity_pool(i.identity_pool_id),
    CreateAccounts: lambda p, i: p.create_accounts(
        i.identity_pool_id, i.count),
    RemoveAccounts: lambda p, i: p.remove_accounts(
        i.identity_pool_id, i.account_names, i.removal_option),
    CreateVMs: lambda p, i: p.create_vms(i.scheme_id, i.account_names),
    RemoveVMs: lambda p, i: p.remove_vms(i.scheme_id, i.host_names),
    GetTask: lambda p, i: p.get_task(i.task_id),
    RegisterMachine: lambda p, i: p.register_machine(
        i.catalog_name, i.machine_name, i.host_name),
    TagMachine: lambda p, i: p.tag_machine(i.tag, i.machine_name),
    AddToPool: lambda p, i: p.add_to_pool(i.pool_name, i.machine_name),
    RemoveFromPool: lambda p, i: p.remove_from_pool(
        i.pool_name, i.machine_names),
    RemoveMachineRecords: lambda p, i: p.remove_machine_records(
        i.machine_names),
}


def get_platform_dispatcher(platform, log=None):
    """
    Get a dispatcher that performs all platform intents by calling the
    corresponding method of ``platform``. The platform logs with ``log``
    bound with the log fields of the effect the intent is performed in.

    :param IPlatform platform: the platform to talk to
    :param BoundLog log: the log to bind, or None for tide's default log
    """
    def performer(call):
        @deferred_performer
        def perform_platform_intent(dispatcher, intent):
            bound = merge_effectful_fields(dispatcher, log)
            return call(platform.with_log(bound), intent)
        return perform_platform_intent

    return TypeDispatcher(
        dict((intent_type, performer(call))
             for intent_type, call in _PLATFORM_CALLS.items()))
