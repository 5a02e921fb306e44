"""
Tests for :mod:`tide.platform.mock`
"""

from twisted.trial.unittest import SynchronousTestCase

from tide.constants import SessionSupport, TaskType
from tide.platform.interface import (
    IPlatform, NoSuchCatalogError, NoSuchPoolError, NoSuchTaskError)
from tide.platform.mock import MockPlatform
from tide.platform.model import Failed, TaskItem
from tide.test.utils import Provides, matches


class MockPlatformTests(SynchronousTestCase):
    """
    Tests for :class:`MockPlatform`
    """

    def setUp(self):
        self.platform = MockPlatform()
        self.platform.add_pool('p1')
        self.platform.add_machine_source('cat1')

    def test_provides_interface(self):
        """
        The mock platform provides :class:`IPlatform`.
        """
        self.assertEqual(self.platform, matches(Provides(IPlatform)))

    def test_pool_counts_members(self):
        """
        The pool's machine and session counts are those of its members.
        """
        self.platform.add_machine('TIDE\\M1', pool_name='p1', session_count=1)
        self.platform.add_machine('TIDE\\M2', pool_name='p1', session_count=0)
        self.platform.add_machine('TIDE\\M3', session_count=1)
        pool = self.successResultOf(self.platform.get_pool('p1'))
        self.assertEqual((pool.total_machines, pool.sessions), (2, 1))

    def test_no_such_pool(self):
        """
        Getting an unknown pool fails.
        """
        self.failureResultOf(self.platform.get_pool('nope'), NoSuchPoolError)

    def test_no_such_catalog(self):
        """
        Getting an unknown catalog fails.
        """
        self.failureResultOf(
            self.platform.get_catalog('nope'), NoSuchCatalogError)

    def test_metadata_is_merged(self):
        """
        Setting metadata keeps keys that are not set.
        """
        self.platform.add_pool('p2', metadata={'other': 'x'})
        self.platform.set_pool_metadata('p2', {'tide:state': 'MonitorUsage'})
        pool = self.successResultOf(self.platform.get_pool('p2'))
        self.assertEqual(dict(pool.metadata),
                         {'other': 'x', 'tide:state': 'MonitorUsage'})

    def test_list_machines_filters(self):
        """
        Machines are filtered by pool, tag and session count together.
        """
        self.platform.add_machine('TIDE\\M1', pool_name='p1', tags=['t'])
        self.platform.add_machine('TIDE\\M2', pool_name='p1', tags=['t'],
                                  session_count=2)
        self.platform.add_machine('TIDE\\M3', pool_name='p1')
        self.platform.add_machine('TIDE\\M4', tags=['t'])
        machines = self.successResultOf(
            self.platform.list_machines(pool_name='p1', tag='t',
                                        session_count=0))
        self.assertEqual([m.name for m in machines], ['TIDE\\M1'])

    def test_create_accounts_by_naming_scheme(self):
        """
        Accounts are named by the identity pool's naming scheme, skipping
        names already taken.
        """
        first = self.successResultOf(
            self.platform.create_accounts('ip-1', 2))
        second = self.successResultOf(
            self.platform.create_accounts('ip-1', 1))
        self.assertEqual(list(first.succeeded),
                         ['TIDE\\TIDE-01', 'TIDE\\TIDE-02'])
        self.assertEqual(list(second.succeeded), ['TIDE\\TIDE-03'])

    def test_create_accounts_quota(self):
        """
        Accounts beyond the quota fail, with distinct names.
        """
        self.platform.account_quota = 1
        result = self.successResultOf(
            self.platform.create_accounts('ip-1', 3))
        self.assertEqual(list(result.succeeded), ['TIDE\\TIDE-01'])
        self.assertEqual(
            list(result.failed),
            [Failed(item='TIDE\\TIDE-02', reason='quota exceeded'),
             Failed(item='TIDE\\TIDE-03', reason='quota exceeded')])

    def test_create_task_lifecycle(self):
        """
        A creation task stays active until completed, then reports the VMs
        it created and the ones that failed.
        """
        self.platform.failing_vms.add('TIDE\\TIDE-02')
        task_id = self.successResultOf(self.platform.create_vms(
            'scheme-1', ['TIDE\\TIDE-01', 'TIDE\\TIDE-02']))
        task = self.successResultOf(self.platform.get_task(task_id))
        self.assertEqual((task.type, task.active), (TaskType.CREATE, True))

        self.platform.complete_task(task_id)
        task = self.successResultOf(self.platform.get_task(task_id))
        self.assertFalse(task.active)
        self.assertEqual(
            list(task.items),
            [TaskItem(host_name='TIDE-01', account_name='TIDE\\TIDE-01')])
        self.assertEqual([f.item for f in task.failed], ['TIDE\\TIDE-02'])

    def test_auto_complete_polls(self):
        """
        Tasks complete by themselves after being polled enough.
        """
        platform = MockPlatform(auto_complete_polls=2)
        platform.add_machine('TIDE\\M1')
        task_id = self.successResultOf(platform.remove_vms('s', ['M1']))
        self.assertTrue(
            self.successResultOf(platform.get_task(task_id)).active)
        task = self.successResultOf(platform.get_task(task_id))
        self.assertFalse(task.active)
        self.assertEqual(
            list(task.items),
            [TaskItem(host_name='M1', account_name='TIDE\\M1')])
        self.assertNotIn('M1', platform.vms)

    def test_no_such_task(self):
        """
        Getting an unknown task fails.
        """
        self.failureResultOf(self.platform.get_task('t'), NoSuchTaskError)

    def test_mutations_are_recorded(self):
        """
        Mutating calls are recorded with their arguments; queries are not.
        """
        self.platform.create_tag('t')
        self.platform.get_tag('t')
        self.platform.register_machine('cat1', 'TIDE\\M1', 'M1')
        self.platform.tag_machine('t', 'TIDE\\M1')
        self.platform.add_to_pool('p1', 'TIDE\\M1')
        self.assertEqual(
            self.platform.calls,
            [('create_tag', 't'),
             ('register_machine', 'cat1', 'TIDE\\M1', 'M1'),
             ('tag_machine', 't', 'TIDE\\M1'),
             ('add_to_pool', 'p1', 'TIDE\\M1')])
        machine = self.platform.machines['TIDE\\M1']
        self.assertEqual((machine.pool_name, set(machine.tags)),
                         ('p1', {'t'}))

    def test_from_fixture(self):
        """
        A platform can be populated from a JSON fixture.
        """
        platform = MockPlatform.from_fixture({
            'pools': {'p1': {'sessionSupport': 'MultiSession'}},
            'catalogs': [{'name': 'cat1', 'sessionSupport': 'MultiSession'}],
            'machines': [{'name': 'TIDE\\M1', 'hostName': 'M1',
                          'poolName': 'p1', 'loadIndex': 5000}]})
        pool = self.successResultOf(platform.get_pool('p1'))
        self.assertEqual(pool.session_support, SessionSupport.MULTI_SESSION)
        self.assertEqual(pool.total_machines, 1)
        catalog = self.successResultOf(platform.get_catalog('cat1'))
        self.assertEqual(catalog.session_support,
                         SessionSupport.MULTI_SESSION)
        self.assertEqual(platform.machines['TIDE\\M1'].load_index, 5000)
