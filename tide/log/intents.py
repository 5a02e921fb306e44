"""
Logging as effects.

Code that runs as an :class:`Effect` logs with :func:`msg`, :func:`trivial`
and :func:`err`, and wraps whole effects with :func:`with_log` to add fields
to everything they log, e.g. the pool being processed.
"""

import attr

from effect import (
    ComposedDispatcher, Effect, NoPerformerFoundError, TypeDispatcher,
    perform, sync_perform, sync_performer)

from toolz.dicttoolz import merge

from twisted.python.failure import Failure

from tide.log import log as default_log


@attr.s
class Log(object):
    """
    Intent to log the message type ``msg`` with ``fields``.
    """
    msg = attr.ib()
    fields = attr.ib()


def _to_failure(failure):
    # None stands for the exception being handled where the intent is built,
    # which is gone by the time the intent is performed
    if failure is None:
        return Failure()
    if isinstance(failure, BaseException):
        return Failure(failure)
    return failure


@attr.s
class LogErr(object):
    """
    Intent to log ``failure`` as an error of message type ``msg``.
    """
    failure = attr.ib(converter=_to_failure)
    msg = attr.ib()
    fields = attr.ib()


@attr.s
class GetFields(object):
    """
    Intent to get the fields bound around the effect being performed.
    """


@attr.s
class BoundFields(object):
    """
    Intent to perform ``effect`` with ``fields`` added to everything it
    logs.
    """
    effect = attr.ib()
    fields = attr.ib()


def with_log(effect, **fields):
    """
    :return: Effect of the result of ``effect``, which logs with ``fields``
    """
    return Effect(BoundFields(effect, fields))


def msg(msg, **fields):
    """Return Effect of :class:`Log`."""
    return Effect(Log(msg, fields))


def trivial(msg, **fields):
    """
    Return Effect of :class:`Log` for a message that is only emitted in
    debug mode.
    """
    return Effect(Log(msg, merge(fields, {'trivial': True})))


def err(failure, msg, **fields):
    """
    Return Effect of :class:`LogErr`. Pass None as ``failure`` from an
    ``except`` block to log the exception being handled.
    """
    return Effect(LogErr(failure, msg, fields))


def get_fields():
    """Return Effect of :class:`GetFields`."""
    return Effect(GetFields())


def merge_effectful_fields(dispatcher, log):
    """
    Bind ``log`` with the fields bound around the intent being performed
    with ``dispatcher``, for performers that call code logging with a
    :class:`BoundLog`.

    :param log: the log to bind, or None for tide's default log
    :return: :class:`BoundLog`
    """
    log = default_log if log is None else log
    try:
        fields = sync_perform(dispatcher, get_fields())
    except NoPerformerFoundError:
        return log
    return log.bind(**fields)


def get_log_dispatcher(log, fields):
    """
    Get a dispatcher performing the logging intents with ``log``, every
    message carrying ``fields`` under its own.

    :param BoundLog log: the log to write to
    :param dict fields: fields bound so far
    """
    @sync_performer
    def perform_log(dispatcher, intent):
        log.msg(intent.msg, **merge(fields, intent.fields))

    @sync_performer
    def perform_log_err(dispatcher, intent):
        log.err(intent.failure, intent.msg, **merge(fields, intent.fields))

    def perform_bound_fields(dispatcher, intent, box):
        bound = ComposedDispatcher([
            get_log_dispatcher(log, merge(fields, intent.fields)),
            dispatcher])
        perform(bound, intent.effect.on(box.succeed, box.fail))

    return TypeDispatcher({
        Log: perform_log,
        LogErr: perform_log_err,
        BoundFields: perform_bound_fields,
        GetFields: sync_performer(lambda d, i: fields),
    })
