"""Constants."""

from constantly import NamedConstant, Names


METADATA_PREFIX = 'tide:'
"""Prefix of every pool metadata key owned by tide."""

MAX_LOAD_INDEX = 10000
"""The load index the platform reports for a fully loaded machine."""

PROVISIONING_TYPE = 'MCS'
"""The only provisioning technology tide can create machines with."""

ACCOUNT_REMOVAL_OPTION = 'Delete'
"""Identity accounts are deleted from the directory, not just released."""

DEFAULT_HIGH_WATERMARK = 80
DEFAULT_LOW_WATERMARK = 20
DEFAULT_TAG_FORMAT = 'tide-autoscale-{pool}'


class SessionSupport(Names):
    """
    Constants representing how many user sessions a machine can host.
    """
    SINGLE_SESSION = NamedConstant()
    MULTI_SESSION = NamedConstant()


class TaskType(Names):
    """
    Constants representing the kind of asynchronous provisioning task.
    """
    CREATE = NamedConstant()
    REMOVE = NamedConstant()
