"""
Tests for :mod:`tide.platform.rest`
"""
import json

from effect import sync_perform

from twisted.internet.task import Clock
from twisted.trial.unittest import SynchronousTestCase

from tide.constants import SessionSupport, TaskType
from tide.effect_dispatcher import get_full_dispatcher
from tide.log.intents import with_log
from tide.platform.intents import get_pool
from tide.platform.interface import (
    IPlatform, NoSuchPoolError, NoSuchTaskError)
from tide.platform.model import Machine, Pool
from tide.platform.rest import RestPlatform
from tide.test.utils import (
    Provides, StubTreq, matches, mock_log, set_config_for_test)
from tide.util.http import APIError

URL = 'http://platform/v1'


class RestPlatformTests(SynchronousTestCase):
    """
    Tests for :class:`RestPlatform`
    """

    def platform(self, responses):
        self.treq = StubTreq(responses)
        self.log = mock_log()
        return RestPlatform(URL, 'tok', log=self.log, treq=self.treq)

    def test_provides_interface(self):
        """
        The REST platform provides :class:`IPlatform`.
        """
        self.assertEqual(self.platform({}), matches(Provides(IPlatform)))

    def test_from_profile(self):
        """
        The URL and token are read from the named profile.
        """
        set_config_for_test(
            self, {'profiles': {'lab': {'url': URL, 'token': 'tok'}}})
        platform = RestPlatform.from_profile('lab', mock_log())
        self.assertEqual((platform.url, platform.token), (URL, 'tok'))

    def test_get_pool(self):
        """
        Pools are fetched by name, with the bearer token, and the request is
        logged as a debug message.
        """
        platform = self.platform({
            ('GET', URL + '/pools/p%201'): (200, {
                'name': 'p 1', 'uid': '7', 'totalMachines': 2,
                'sessions': 1, 'sessionSupport': 'SingleSession'})})
        pool = self.successResultOf(platform.get_pool('p 1'))
        self.assertEqual(
            pool,
            Pool(name='p 1', uid='7', total_machines=2, sessions=1,
                 session_support=SessionSupport.SINGLE_SESSION))
        [(_, _, kwargs)] = self.treq.requests
        self.assertEqual(kwargs['headers']['authorization'],
                         ['Bearer tok'])
        self.log.msg.assert_called_once_with(
            'platform-request', method='GET', url=URL + '/pools/p%201',
            code=200, trivial=True, platform=URL)

    def test_requests_logged_with_effect_fields(self):
        """
        Requests made for platform intents are logged with the fields bound
        around the effect, such as the pool being processed.
        """
        platform = self.platform({
            ('GET', URL + '/pools/p1'): (200, {
                'name': 'p1', 'uid': '7', 'totalMachines': 2,
                'sessions': 1, 'sessionSupport': 'SingleSession'})})
        log = mock_log()
        dispatcher = get_full_dispatcher(Clock(), platform, log)
        pool = sync_perform(dispatcher, with_log(get_pool('p1'), pool='p1'))
        self.assertEqual(pool.name, 'p1')
        log.msg.assert_called_once_with(
            'platform-request', method='GET', url=URL + '/pools/p1',
            code=200, trivial=True, platform=URL, pool='p1')
        self.assertFalse(self.log.msg.called)

    def test_get_pool_not_found(self):
        """
        A 404 when getting a pool is a :class:`NoSuchPoolError`.
        """
        platform = self.platform({('GET', URL + '/pools/p1'): (404, {})})
        self.failureResultOf(platform.get_pool('p1'), NoSuchPoolError)

    def test_unexpected_code(self):
        """
        Other unexpected codes are :class:`APIError`.
        """
        platform = self.platform({
            ('GET', URL + '/pools/p1'): (500, {'error': 'boom'})})
        f = self.failureResultOf(platform.get_pool('p1'), APIError)
        self.assertEqual(f.value.code, 500)

    def test_set_pool_metadata(self):
        """
        Metadata is PATCHed as a JSON object; a 204 is success.
        """
        platform = self.platform({
            ('PATCH', URL + '/pools/p1/metadata'): (204, None)})
        self.assertIsNone(self.successResultOf(
            platform.set_pool_metadata('p1', {'tide:state': 'MonitorUsage'})))
        [(_, _, kwargs)] = self.treq.requests
        self.assertEqual(json.loads(kwargs['data'].decode('utf-8')),
                         {'tide:state': 'MonitorUsage'})

    def test_list_machines_params(self):
        """
        Only the given filters are sent as query parameters.
        """
        platform = self.platform({
            ('GET', URL + '/machines'): (200, {'machines': [
                {'name': 'TIDE\\M1', 'hostName': 'M1', 'tags': ['t']}]})})
        machines = self.successResultOf(
            platform.list_machines(tag='t', session_count=0))
        self.assertEqual(
            machines,
            [Machine(name='TIDE\\M1', host_name='M1', tags=['t'])])
        [(_, _, kwargs)] = self.treq.requests
        self.assertEqual(kwargs['params'], {'tag': 't', 'sessionCount': '0'})

    def test_get_tag_missing(self):
        """
        A tag that does not exist is None.
        """
        platform = self.platform({('GET', URL + '/tags/t'): (404, {})})
        self.assertIsNone(self.successResultOf(platform.get_tag('t')))

    def test_create_vms(self):
        """
        Creating VMs is accepted with the id of the task doing it.
        """
        platform = self.platform({
            ('POST', URL + '/provisioning-schemes/s1/vms'): (
                202, {'taskId': 'task-9'})})
        self.assertEqual(
            self.successResultOf(platform.create_vms('s1', ['TIDE\\A'])),
            'task-9')
        [(_, _, kwargs)] = self.treq.requests
        self.assertEqual(json.loads(kwargs['data'].decode('utf-8')),
                         {'accounts': ['TIDE\\A']})

    def test_get_task(self):
        """
        Tasks are parsed; an unknown task is a :class:`NoSuchTaskError`.
        """
        platform = self.platform({
            ('GET', URL + '/tasks/t1'): (200, {
                'id': 't1', 'type': 'Remove', 'active': True}),
            ('GET', URL + '/tasks/t2'): (404, {})})
        task = self.successResultOf(platform.get_task('t1'))
        self.assertEqual((task.type, task.active), (TaskType.REMOVE, True))
        self.failureResultOf(platform.get_task('t2'), NoSuchTaskError)

    def test_remove_accounts(self):
        """
        Accounts are removed with the removal option.
        """
        platform = self.platform({
            ('POST', URL + '/identity-pools/ip-1/accounts/remove'): (
                200, {'succeeded': ['TIDE\\A'], 'failed': []})})
        result = self.successResultOf(
            platform.remove_accounts('ip-1', ['TIDE\\A'], 'Delete'))
        self.assertEqual(list(result.succeeded), ['TIDE\\A'])
        [(_, _, kwargs)] = self.treq.requests
        self.assertEqual(json.loads(kwargs['data'].decode('utf-8')),
                         {'accounts': ['TIDE\\A'], 'removalOption': 'Delete'})
