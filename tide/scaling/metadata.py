"""
The autoscale record tide keeps in a pool's metadata map, and the effects
that load and save it.

Every value is stored as a string under a key prefixed with
:data:`METADATA_PREFIX`, so that metadata set by anything else on the pool
is never taken for ours.
"""

import attr

from effect import Effect
from effect.do import do, do_return

from pyrsistent import pvector

from constantly import NamedConstant, Names

from tide.constants import METADATA_PREFIX
from tide.platform.intents import SetPoolMetadata, get_pool
from tide.scaling.errors import CorruptMetadataError


class State(Names):
    """
    Constants representing the state of a pool's autoscaling.
    """
    MONITOR_USAGE = NamedConstant()
    PROVISION_MACHINES = NamedConstant()
    MONITOR_PROVISION = NamedConstant()
    ADD_MACHINES = NamedConstant()
    REMOVE_MACHINES = NamedConstant()
    MONITOR_DELETE_MACHINES = NamedConstant()


_STATE_NAMES = {
    State.MONITOR_USAGE: 'MonitorUsage',
    State.PROVISION_MACHINES: 'ProvisionMachines',
    State.MONITOR_PROVISION: 'MonitorProvision',
    State.ADD_MACHINES: 'AddMachines',
    State.REMOVE_MACHINES: 'RemoveMachines',
    State.MONITOR_DELETE_MACHINES: 'MonitorDeleteMachines',
}

_STATES_BY_NAME = {v: k for k, v in _STATE_NAMES.items()}


def state_name(state):
    """
    :return: the name ``state`` is stored and logged as, e.g.
        ``MonitorUsage``
    """
    return _STATE_NAMES[state]


CHECKPOINT_REGISTERED = 'registered'
"""Machines created by the pending task are registered and tagged."""

CHECKPOINT_DETACHING = 'detaching'
"""Idle machines are chosen for removal, and may still be in the pool."""

CHECKPOINT_DETACHED = 'detached'
"""Idle machines are out of the pool and the machine directory."""


def _key(name):
    return METADATA_PREFIX + name


def _to_int(value):
    return str(value)


def _from_int(key, value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise CorruptMetadataError(key, value)


def _from_bool(key, value):
    if value == 'true':
        return True
    if value == 'false':
        return False
    raise CorruptMetadataError(key, value)


def _from_state(key, value):
    try:
        return _STATES_BY_NAME[value]
    except KeyError:
        raise CorruptMetadataError(key, value)


def _required(mapping, name):
    key = _key(name)
    value = mapping.get(key)
    if not value:
        raise CorruptMetadataError(key, value)
    return key, value


def _watermarks(mapping):
    high_key, high_value = _required(mapping, 'highWatermark')
    low_key, low_value = _required(mapping, 'lowWatermark')
    high = _from_int(high_key, high_value)
    low = _from_int(low_key, low_value)
    if not 1 <= high <= 100:
        raise CorruptMetadataError(high_key, high_value)
    if not 1 <= low < high:
        raise CorruptMetadataError(low_key, low_value)
    return high, low


@attr.s(frozen=True)
class MetadataRecord(object):
    """
    The autoscale state and configuration of one pool.

    :ivar state: member of :class:`State`
    :ivar bool clean_exit: whether the last state handler returned normally
    :ivar str tag: tag carried by the machines autoscaling owns
    :ivar str catalog_name: catalog new machines are registered against
    :ivar str identity_pool_id: identity pool new accounts are created in
    :ivar str provisioning_scheme_id: scheme new VMs are created with
    :ivar int high_watermark: load percentage above which machines are added
    :ivar int low_watermark: load percentage below which machines are removed
    :ivar int max_machines: most machines autoscaling may own, unbounded when
        not positive
    :ivar str pending_task_id: id of the in-flight task, empty when none
    :ivar int actions_taken: machines the in-flight task creates or removes
    :ivar int last_load: load percentage that caused the last transition out
        of ``MonitorUsage``
    :ivar str last_update_time: ISO8601 time machines were last added or
        removed, empty when never
    :ivar str checkpoint: saga checkpoint, empty when between sagas
    :ivar PVector checkpoint_items: names recorded with the checkpoint
    :ivar PVector checkpoint_hosts: host names of the machines being
        removed, in the order of ``checkpoint_items``
    """
    state = attr.ib()
    tag = attr.ib()
    catalog_name = attr.ib()
    identity_pool_id = attr.ib()
    provisioning_scheme_id = attr.ib()
    high_watermark = attr.ib()
    low_watermark = attr.ib()
    max_machines = attr.ib(default=0)
    clean_exit = attr.ib(default=False)
    pending_task_id = attr.ib(default='')
    actions_taken = attr.ib(default=0)
    last_load = attr.ib(default=0)
    last_update_time = attr.ib(default='')
    checkpoint = attr.ib(default='')
    checkpoint_items = attr.ib(default=pvector(), converter=pvector)
    checkpoint_hosts = attr.ib(default=pvector(), converter=pvector)

    def transition(self, state, **changes):
        """
        :return: a copy of this record in ``state``, with other fields
            changed as given
        """
        return attr.evolve(self, state=state, **changes)

    def idle(self, **changes):
        """
        :return: a copy of this record back in ``MonitorUsage`` with no
            pending task or checkpoint
        """
        return self.transition(
            State.MONITOR_USAGE, pending_task_id='', actions_taken=0,
            checkpoint='', checkpoint_items=[], checkpoint_hosts=[],
            **changes)

    @classmethod
    def from_metadata(cls, mapping):
        """
        Parse the record out of a pool's metadata map.

        :param mapping: the pool's metadata, keys and values being strings
        :return: :class:`MetadataRecord`, or None if the pool has no autoscale
            state
        :raises: :class:`CorruptMetadataError` if a value cannot be parsed,
            or the watermarks are out of range
        """
        if _key('state') not in mapping:
            return None

        def optional(name, default=''):
            return mapping.get(_key(name)) or default

        def optional_int(name):
            value = optional(name)
            return _from_int(_key(name), value) if value else 0

        def names(name):
            value = optional(name)
            return value.split(';') if value else []

        state = _from_state(*_required(mapping, 'state'))
        high, low = _watermarks(mapping)
        return cls(
            state=state,
            clean_exit=_from_bool(
                _key('cleanExit'), optional('cleanExit', 'false')),
            tag=_required(mapping, 'tag')[1],
            catalog_name=_required(mapping, 'catalogName')[1],
            identity_pool_id=_required(mapping, 'identityPoolId')[1],
            provisioning_scheme_id=_required(
                mapping, 'provisioningSchemeId')[1],
            high_watermark=high,
            low_watermark=low,
            max_machines=optional_int('maxMachines'),
            pending_task_id=optional('pendingTaskId'),
            actions_taken=optional_int('actionsTaken'),
            last_load=optional_int('lastLoad'),
            last_update_time=optional('lastUpdateTime'),
            checkpoint=optional('checkpoint'),
            checkpoint_items=names('checkpointItems'),
            checkpoint_hosts=names('checkpointHosts'))

    def to_metadata(self):
        """
        :return: ``dict`` of every metadata key of the record to its string
            value
        """
        return {
            _key('state'): state_name(self.state),
            _key('cleanExit'): 'true' if self.clean_exit else 'false',
            _key('tag'): self.tag,
            _key('catalogName'): self.catalog_name,
            _key('identityPoolId'): self.identity_pool_id,
            _key('provisioningSchemeId'): self.provisioning_scheme_id,
            _key('highWatermark'): _to_int(self.high_watermark),
            _key('lowWatermark'): _to_int(self.low_watermark),
            _key('maxMachines'): _to_int(self.max_machines),
            _key('pendingTaskId'): self.pending_task_id,
            _key('actionsTaken'): _to_int(self.actions_taken),
            _key('lastLoad'): _to_int(self.last_load),
            _key('lastUpdateTime'): self.last_update_time,
            _key('checkpoint'): self.checkpoint,
            _key('checkpointItems'): ';'.join(self.checkpoint_items),
            _key('checkpointHosts'): ';'.join(self.checkpoint_hosts),
        }


@do
def load_record(pool_name):
    """
    Get a pool and its autoscale record.

    :return: Effect of ``(Pool, MetadataRecord or None)``
    """
    pool = yield get_pool(pool_name)
    yield do_return((pool, MetadataRecord.from_metadata(pool.metadata)))


def save_record(pool_name, record):
    """
    Write every key of ``record`` to the pool's metadata.

    :return: Effect of None
    """
    return Effect(SetPoolMetadata(pool_name, record.to_metadata()))
