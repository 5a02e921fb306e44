"""
Observer factories used to configure tide's logging sink.
"""
import socket
import sys

from tide.log.formatters import (
    ErrorFormattingWrapper,
    JSONObserverWrapper,
    PEP3101FormattingWrapper,
    RecordWrapper,
    StreamObserverWrapper,
    TrivialFilterWrapper,
)
from tide.log.spec import SpecificationObserverWrapper


def make_observer_chain(ultimate_observer, indent, debug=False):
    """
    Return the observer expanding, formatting and serializing an event
    before passing it to ``ultimate_observer``.

    :param indent: JSON indentation, or None for one line per event
    :param bool debug: whether trivial events are kept
    """
    json_observer = JSONObserverWrapper(
        ultimate_observer, sort_keys=True, indent=indent)
    return TrivialFilterWrapper(
        SpecificationObserverWrapper(
            PEP3101FormattingWrapper(
                ErrorFormattingWrapper(
                    RecordWrapper(json_observer, socket.gethostname())))),
        debug=debug)


def observer_factory(stream=None):
    """
    Log one JSON record per line to ``stream`` (sys.stdout by default),
    dropping trivial events.
    """
    return make_observer_chain(
        StreamObserverWrapper(stream or sys.stdout), None)


def observer_factory_debug(stream=None):
    """
    Log indented JSON records to ``stream`` (sys.stdout by default),
    including trivial events.
    """
    return make_observer_chain(
        StreamObserverWrapper(stream or sys.stdout), 2, debug=True)
