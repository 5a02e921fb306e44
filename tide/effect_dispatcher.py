"""Effect dispatchers for tide."""

from effect import ComposedDispatcher, base_dispatcher

from txeffect import make_twisted_dispatcher

from .log.intents import get_log_dispatcher
from .platform.intents import get_platform_dispatcher


def get_simple_dispatcher(reactor):
    """
    Get an Effect dispatcher that can handle the generic effects, such as
    :obj:`effect.Func` and :obj:`effect.Delay`. It does NOT handle platform
    or logging intents.
    """
    return ComposedDispatcher([
        base_dispatcher,
        make_twisted_dispatcher(reactor),
    ])


def get_full_dispatcher(reactor, platform, log):
    """
    Return a dispatcher that can perform all of tide's effects.

    :param reactor: the reactor to perform Deferred-returning intents with
    :param IPlatform platform: the platform to perform platform intents on
    :param BoundLog log: the log to perform logging intents with
    """
    return ComposedDispatcher([
        get_platform_dispatcher(platform, log),
        get_log_dispatcher(log, {}),
        get_simple_dispatcher(reactor),
    ])
