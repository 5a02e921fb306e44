"""
Data classes for the entities the platform reports to tide.
"""
import attr
from attr.validators import instance_of, optional

from pyrsistent import PMap, PSet, freeze, pmap, pset, pvector

from tide.constants import SessionSupport, TaskType


def _validate_constant(container):
    def validator(_inst, attribute, value):
        if value not in container.iterconstants():
            raise ValueError("{0} is not a {1}".format(
                value, container.__name__))
    return validator


def session_support_from_json(value):
    """
    The platform reports session support as ``SingleSession`` or
    ``MultiSession``.
    """
    if value == 'MultiSession':
        return SessionSupport.MULTI_SESSION
    return SessionSupport.SINGLE_SESSION


@attr.s(frozen=True)
class Pool(object):
    """
    A managed group of machines (a delivery group).

    :ivar str name: name of the pool
    :ivar str uid: platform identifier of the pool
    :ivar int total_machines: number of machines that are members of the pool
    :ivar int sessions: number of user sessions currently in the pool
    :ivar session_support: member of :class:`SessionSupport`
    :ivar PMap metadata: the pool's string-to-string metadata map
    """
    name = attr.ib(validator=instance_of(str))
    uid = attr.ib()
    total_machines = attr.ib(validator=instance_of(int))
    sessions = attr.ib(validator=instance_of(int))
    session_support = attr.ib(
        validator=_validate_constant(SessionSupport))
    metadata = attr.ib(default=pmap(), converter=freeze,
                       validator=instance_of(PMap))

    @classmethod
    def from_json(cls, blob):
        return cls(
            name=blob['name'],
            uid=blob['uid'],
            total_machines=blob['totalMachines'],
            sessions=blob['sessions'],
            session_support=session_support_from_json(
                blob['sessionSupport']),
            metadata=blob.get('metadata', {}))


@attr.s(frozen=True)
class Machine(object):
    """
    A machine known to the platform's machine directory.

    :ivar str name: machine name, which is also its identity account name
    :ivar str host_name: name of the VM on the hypervisor
    :ivar int session_count: number of sessions on the machine
    :ivar int load_index: 0 to :data:`MAX_LOAD_INDEX`
    :ivar PSet tags: tags attached to the machine
    :ivar pool_name: pool the machine is a member of, if any
    """
    name = attr.ib()
    host_name = attr.ib()
    session_count = attr.ib(default=0)
    load_index = attr.ib(default=0)
    tags = attr.ib(default=pset(), converter=pset,
                   validator=instance_of(PSet))
    pool_name = attr.ib(default=None)

    @classmethod
    def from_json(cls, blob):
        return cls(
            name=blob['name'],
            host_name=blob['hostName'],
            session_count=blob.get('sessionCount', 0),
            load_index=blob.get('loadIndex', 0),
            tags=blob.get('tags', []),
            pool_name=blob.get('poolName'))


@attr.s(frozen=True)
class Catalog(object):
    """A machine source: the catalog new machines are registered against."""
    name = attr.ib()
    is_physical = attr.ib(default=False)
    provisioning_type = attr.ib(default='MCS')
    session_support = attr.ib(default=SessionSupport.SINGLE_SESSION)
    provisioning_scheme_id = attr.ib(default=None)

    @classmethod
    def from_json(cls, blob):
        return cls(
            name=blob['name'],
            is_physical=blob.get('isPhysical', False),
            provisioning_type=blob.get('provisioningType'),
            session_support=session_support_from_json(
                blob.get('sessionSupport')),
            provisioning_scheme_id=blob.get('provisioningSchemeId'))


@attr.s(frozen=True)
class ProvisioningScheme(object):
    id = attr.ib()
    name = attr.ib()
    identity_pool_id = attr.ib(default=None)

    @classmethod
    def from_json(cls, blob):
        return cls(id=blob['id'], name=blob['name'],
                   identity_pool_id=blob.get('identityPoolId'))


@attr.s(frozen=True)
class IdentityPool(object):
    id = attr.ib()
    name = attr.ib()
    naming_scheme = attr.ib(default=None)

    @classmethod
    def from_json(cls, blob):
        return cls(id=blob['id'], name=blob['name'],
                   naming_scheme=blob.get('namingScheme'))


@attr.s(frozen=True)
class Failed(object):
    """
    An item of a bulk operation that the platform could not process.

    :ivar str item: the account or machine name
    :ivar str reason: the platform's reason
    """
    item = attr.ib()
    reason = attr.ib()


def _failures(blobs):
    return pvector(Failed(item=b['item'], reason=b['reason']) for b in blobs)


@attr.s(frozen=True)
class AccountResult(object):
    """
    Result of creating or removing identity accounts.

    :ivar PVector succeeded: names of the accounts that were processed
    :ivar PVector failed: :class:`Failed` items
    """
    succeeded = attr.ib(default=pvector(), converter=pvector)
    failed = attr.ib(default=pvector(), converter=pvector)

    @classmethod
    def from_json(cls, blob):
        return cls(succeeded=blob.get('succeeded', []),
                   failed=_failures(blob.get('failed', [])))


@attr.s(frozen=True)
class TaskItem(object):
    """
    A VM created or removed by a task.

    :ivar str host_name: name of the VM on the hypervisor
    :ivar str account_name: identity account the VM was created with
    """
    host_name = attr.ib()
    account_name = attr.ib()


@attr.s(frozen=True)
class Task(object):
    """
    An asynchronous provisioning task.

    :ivar str id: task identifier
    :ivar type: member of :class:`TaskType`
    :ivar bool active: whether the platform is still working on it
    :ivar PVector items: :class:`TaskItem` created or removed so far
    :ivar PVector failed: :class:`Failed` items
    """
    id = attr.ib()
    type = attr.ib(validator=_validate_constant(TaskType))
    active = attr.ib(validator=instance_of(bool))
    items = attr.ib(default=pvector(), converter=pvector)
    failed = attr.ib(default=pvector(), converter=pvector)
    error = attr.ib(default=None, validator=optional(instance_of(str)))

    @classmethod
    def from_json(cls, blob):
        return cls(
            id=blob['id'],
            type=TaskType.lookupByName(blob['type'].upper()),
            active=blob['active'],
            items=[TaskItem(host_name=i['hostName'],
                            account_name=i['accountName'])
                   for i in blob.get('items', [])],
            failed=_failures(blob.get('failed', [])),
            error=blob.get('error'))
