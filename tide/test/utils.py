"""
Helpers shared by tide's tests.
"""
import json
from functools import partial
from operator import attrgetter

from effect import base_dispatcher, raise_, sync_perform
from effect.testing import perform_sequence

import mock

from testtools.matchers import MatchesException, Mismatch

from toolz.functoolz import compose

from twisted.internet import defer
from twisted.internet.task import Clock
from twisted.python.failure import Failure

from zope.interface.verify import verifyObject

from tide.constants import SessionSupport
from tide.effect_dispatcher import get_full_dispatcher
from tide.log.bound import BoundLog
from tide.platform.model import Pool
from tide.scaling.metadata import MetadataRecord, State
from tide.util.config import set_config_data


class matches(object):
    """
    Wrap a testtools matcher so that it can stand in for a value compared
    with ``==``, e.g. in the arguments given to ``assert_called_with``::

        observer.assert_called_once_with(
            matches(ContainsDict({'level': Equals(LEVEL_ERROR)})))
    """
    def __init__(self, matcher):
        self._matcher = matcher
        self._mismatch = None

    def __eq__(self, other):
        self._mismatch = self._matcher.match(other)
        return self._mismatch is None

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        if self._mismatch is None:
            return 'matches({0!s})'.format(self._matcher)
        return 'matches({0!s}): <mismatch: {1}>'.format(
            self._matcher, self._mismatch.describe())


class SameJSON(object):
    """
    Equal to any JSON text that decodes to ``expected``.
    """
    def __init__(self, expected):
        self._expected = expected

    def __eq__(self, other):
        return self._expected == json.loads(other)

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'SameJSON({0!r})'.format(self._expected)


class Provides(object):
    """
    Matcher of objects that fully provide the interface ``intf``.
    """
    def __init__(self, intf):
        self.intf = intf

    def __str__(self):
        return 'Provides {0}'.format(self.intf)

    def match(self, inst):
        if verifyObject(self.intf, inst):
            return None
        return Mismatch('{0!r} does not provide {1}'.format(inst, self.intf))


class CheckFailure(object):
    """
    Equal to any :class:`Failure` wrapping an exception of
    ``exception_type``.
    """
    def __init__(self, exception_type):
        self.exception_type = exception_type

    def __repr__(self):
        return 'CheckFailure({0!r})'.format(self.exception_type)

    def __eq__(self, other):
        return (isinstance(other, Failure) and
                other.check(self.exception_type) is not None)

    def __ne__(self, other):
        return not self == other


class CheckFailureValue(object):
    """
    Equal to any :class:`Failure` wrapping an exception of the same type
    and arguments as ``exception``.
    """
    def __init__(self, exception):
        self.exception = exception

    def __repr__(self):
        return 'CheckFailureValue({0!r})'.format(self.exception)

    def __eq__(self, other):
        if not isinstance(other, Failure):
            return False
        matcher = MatchesException(self.exception)
        return matcher.match((type(other.value), other.value, None)) is None

    def __ne__(self, other):
        return not self == other


def mock_log():
    """
    :return: a :class:`BoundLog` logging to mocks, so that tests can assert
        on ``log.msg`` and ``log.err`` with every bound field
    """
    return BoundLog(mock.Mock(spec=[], return_value=None),
                    mock.Mock(spec=[], return_value=None))


class DummyException(Exception):
    """
    Raised by tests to stand for any error.
    """


def set_config_for_test(testcase, data):
    """
    Make ``data`` the configuration until ``testcase`` ends.
    """
    set_config_data(data)
    testcase.addCleanup(set_config_data, {})


class StubResponse(object):
    """
    A canned treq response.
    """
    def __init__(self, code, headers=None, data=None):
        self.code = code
        self.headers = headers
        self._data = data


class StubTreq(object):
    """
    Stands in for treq, answering requests with canned responses.

    :ivar list requests: ``(method, url, kwargs)`` of every request made
    """
    def __init__(self, responses):
        """
        :param responses: ``dict`` of ``(method, url)`` to ``(code, body)``,
            ``body`` being JSON-able
        """
        self.responses = responses
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        code, body = self.responses[(method, url)]
        return defer.succeed(StubResponse(code, data=body))

    def json_content(self, response):
        return defer.succeed(response._data)

    def content(self, response):
        return defer.succeed(json.dumps(response._data).encode('utf-8'))


def nested_sequence(seq, get_effect=attrgetter('effect'),
                    fallback_dispatcher=base_dispatcher):
    """
    Return a performer for ``perform_sequence`` that performs the effect
    wrapped by an intent with its own sequence ``seq``::

        [(BoundFields(mock.ANY, {'pool': 'pool1'}),
          nested_sequence([(GetPool('pool1'), const(p))]))]
    """
    return compose(
        partial(perform_sequence, seq,
                fallback_dispatcher=fallback_dispatcher),
        get_effect)


def noop(_):
    """Perform an intent as None."""


def const(v):
    """
    :return: a performer for ``perform_sequence`` always returning ``v``
    """
    return lambda i: v


def conste(e):
    """
    :return: a performer for ``perform_sequence`` always raising ``e``
    """
    return lambda i: raise_(e)


def perform_on(platform, eff, log=None):
    """
    Synchronously perform ``eff`` against a :class:`MockPlatform`.

    :return: the result of the effect
    """
    dispatcher = get_full_dispatcher(Clock(), platform, log or mock_log())
    return sync_perform(dispatcher, eff)


def pool(name='pool1', total_machines=10, sessions=5,
         session_support=SessionSupport.SINGLE_SESSION, metadata=None):
    """Return a :class:`Pool` with defaults for the tests."""
    return Pool(name=name, uid='uid-' + name, total_machines=total_machines,
                sessions=sessions, session_support=session_support,
                metadata=metadata or {})


def record(state=State.MONITOR_USAGE, **kwargs):
    """Return a :class:`MetadataRecord` with defaults for the tests."""
    fields = dict(tag='tide-autoscale-pool1', catalog_name='cat1',
                  identity_pool_id='ip-1', provisioning_scheme_id='scheme-1',
                  high_watermark=80, low_watermark=20)
    fields.update(kwargs)
    return MetadataRecord(state=state, **fields)
