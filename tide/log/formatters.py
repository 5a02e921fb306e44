"""
Log observers that shape tide's events into JSON lines.

Each ``*Wrapper`` takes the observer to pass events on to and returns a new
observer, so that :mod:`tide.log.setup` can chain them.
"""
import json
import time
from datetime import datetime
from functools import singledispatch

from twisted.python.failure import Failure


LEVEL_ERROR = 3
LEVEL_INFO = 6


@singledispatch
def serialize_to_jsonable(obj):
    """
    Return a JSON-able form of ``obj`` for the logs: its ``repr`` unless a
    form is registered for its type.
    """
    return repr(obj)


@serialize_to_jsonable.register(datetime)
def _serialize_datetime(obj):
    return obj.isoformat()


@serialize_to_jsonable.register(set)
@serialize_to_jsonable.register(frozenset)
def _serialize_set(obj):
    return sorted(obj)


def TrivialFilterWrapper(observer, debug=False):
    """
    Drop events logged as trivial unless ``debug`` is set, and record the
    severity of everything that passes through.
    """
    def trivial_filter(event):
        is_trivial = event.pop('trivial', False)
        if is_trivial and not debug:
            return
        event['severity'] = 'trivial' if is_trivial else 'normal'
        observer(event)

    return trivial_filter


def _format(text, event, error_key):
    try:
        return text.format(**event)
    except Exception:
        event[error_key] = str(Failure())
        return text


def PEP3101FormattingWrapper(observer):
    """
    Fill an event's fields into its message, and into the ``why`` of an
    error, with :meth:`str.format`. Text that cannot be formatted is kept
    as it is, and the error is recorded next to it.
    """
    def formatter(event):
        if event.get('why'):
            event['why'] = _format(event['why'], event,
                                   'why_formatting_error')
        message = ' '.join(event.get('message', ()))
        if message:
            event['message'] = (
                _format(message, event, 'message_formatting_error'),)
        observer(event)

    return formatter


def _describe_failure(failure):
    error = failure.value
    summary = repr(error)
    fields = {'traceback': failure.getTraceback(),
              'exception_type': type(error).__name__}
    details = serialize_to_jsonable(error)
    if details != summary:
        fields['error_details'] = details
    return summary, fields


def ErrorFormattingWrapper(observer):
    """
    Replace Twisted's error fields (``isError``, ``failure`` and ``why``)
    with tide's.

    An error without a message of its own gets ``<why>: <exception>`` as its
    message, and its failure is logged as ``traceback``, ``exception_type``
    and, when the exception has a registered JSON-able form,
    ``error_details``. Every event gets a syslog ``level``.
    """
    def error_formatter(event):
        is_error = event.pop('isError', False)
        failure = event.pop('failure', None)
        why = event.pop('why', None)
        summary = ''
        if is_error:
            if failure is not None:
                summary, fields = _describe_failure(failure)
                event.update(fields)
            if why:
                summary = '{0}: {1}'.format(why, summary)
        event['message'] = (''.join(event.get('message', ())) or summary,)
        event.setdefault('level', LEVEL_ERROR if is_error else LEVEL_INFO)
        observer(event)

    return error_formatter


def RecordWrapper(observer, hostname, seconds=time.time):
    """
    Turn an event into the record that is written out: its own fields, plus
    the host, an ISO 8601 ``@timestamp`` and ``tide_facility``, the system
    the event was logged under.

    :param str hostname: name of the host tide runs on
    :param seconds: 0-argument callable returning the current time, used
        for events that carry none
    """
    def record_maker(event):
        record = dict((key, value) for key, value in event.items()
                      if key not in ('time', 'system', 'id'))
        system = event.get('system', '-')
        record.update({
            '@version': 1,
            '@timestamp': datetime.fromtimestamp(
                event.get('time', seconds())).isoformat(),
            'host': hostname,
            'tide_facility': 'tide' if system == '-' else system,
        })
        observer(record)

    return record_maker


def JSONObserverWrapper(observer, **kwargs):
    """
    Serialize an event as JSON with :func:`json.dumps` called with
    ``kwargs``, and pass it on as the message of a new event. Values that
    are not JSON-able are logged with :func:`serialize_to_jsonable`.
    """
    def json_observer(event):
        if 'message' in event:
            event['message'] = ''.join(event['message'])
        observer({'message': (json.dumps(
            event, default=serialize_to_jsonable, **kwargs),)})

    return json_observer


def StreamObserverWrapper(stream):
    """
    Write each event's message to ``stream`` as a line, flushing after
    every line.
    """
    def stream_observer(event):
        stream.write(''.join(event['message']) + '\n')
        stream.flush()

    return stream_observer
