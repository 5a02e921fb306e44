"""
Mock (in memory) implementation of the orchestration platform, used by the
tests and for dry runs.
"""
import re
from functools import wraps
from itertools import count

from twisted.internet import defer

from zope.interface import implementer

from tide.constants import SessionSupport, TaskType
from tide.platform.interface import (
    IPlatform, NoSuchCatalogError, NoSuchPoolError, NoSuchTaskError)
from tide.platform.model import (
    AccountResult, Catalog, Failed, IdentityPool, Machine, Pool,
    ProvisioningScheme, Task, TaskItem, session_support_from_json)


def host_name_of(account_name):
    """
    The VM created for an account is named after the account, without its
    domain.
    """
    return account_name.split('\\')[-1]


def _recorded(f):
    @wraps(f)
    def wrapper(self, *args):
        self.calls.append((f.__name__,) + args)
        return f(self, *args)
    return wrapper


@implementer(IPlatform)
class MockPlatform(object):
    """
    .. autointerface:: tide.platform.interface.IPlatform

    :ivar list calls: every mutating call made, as ``(method, *args)``
    :ivar dict machines: machine name -> :class:`Machine`, the machine
        directory
    :ivar dict vms: host name -> account name of every VM on the hypervisor
    :ivar dict tasks: task id -> ``dict`` describing the task
    :ivar int auto_complete_polls: when not None, tasks complete by
        themselves after being polled this many times
    :ivar int account_quota: when not None, at most this many more accounts
        can be created; the rest fail
    :ivar set failing_vms: account names whose VMs fail to be created
    """

    def __init__(self, domain='TIDE', auto_complete_polls=None):
        self.domain = domain
        self.auto_complete_polls = auto_complete_polls
        self.pools = {}
        self.machines = {}
        self.tags = set()
        self.catalogs = {}
        self.schemes = {}
        self.identity_pools = {}
        self.accounts = {}
        self.vms = {}
        self.tasks = {}
        self.calls = []
        self.account_quota = None
        self.failing_vms = set()
        self._ids = count(1)

    @classmethod
    def from_fixture(cls, fixture):
        """
        Build a platform populated from a JSON fixture, for dry runs::

            {"pools": {"pool1": {"sessionSupport": "SingleSession"}},
             "catalogs": [{"name": "cat1", "sessionSupport": "SingleSession",
                           "namingScheme": "TIDE-##"}],
             "machines": [{"name": "TIDE\\\\M1", "hostName": "M1",
                           "poolName": "pool1", "sessionCount": 1}]}
        """
        platform = cls(auto_complete_polls=fixture.get('taskPolls', 1))
        for name, pool in fixture.get('pools', {}).items():
            platform.add_pool(
                name,
                session_support=session_support_from_json(
                    pool.get('sessionSupport')),
                metadata=pool.get('metadata'))
        for catalog in fixture.get('catalogs', []):
            platform.add_machine_source(
                catalog['name'],
                scheme_id=catalog.get('provisioningSchemeId', 'scheme-1'),
                identity_pool_id=catalog.get('identityPoolId', 'ip-1'),
                naming_scheme=catalog.get('namingScheme', 'TIDE-##'),
                session_support=session_support_from_json(
                    catalog.get('sessionSupport')))
        for blob in fixture.get('machines', []):
            m = Machine.from_json(blob)
            platform.add_machine(
                m.name, pool_name=m.pool_name, session_count=m.session_count,
                load_index=m.load_index, tags=m.tags, host_name=m.host_name)
        return platform

    # Fixture helpers

    def add_pool(self, name, session_support=SessionSupport.SINGLE_SESSION,
                 metadata=None):
        self.pools[name] = {'uid': str(next(self._ids)),
                            'session_support': session_support,
                            'metadata': dict(metadata or {})}

    def add_machine(self, name, pool_name=None, session_count=0,
                    load_index=0, tags=(), host_name=None):
        host_name = host_name or host_name_of(name)
        self.machines[name] = Machine(
            name=name, host_name=host_name, session_count=session_count,
            load_index=load_index, tags=tags, pool_name=pool_name)
        self.vms[host_name] = name
        return self.machines[name]

    def set_sessions(self, machine_name, session_count, load_index=None):
        m = self.machines[machine_name]
        self.machines[machine_name] = Machine(
            name=m.name, host_name=m.host_name, session_count=session_count,
            load_index=m.load_index if load_index is None else load_index,
            tags=m.tags, pool_name=m.pool_name)

    def add_machine_source(self, catalog_name, scheme_id='scheme-1',
                           identity_pool_id='ip-1', naming_scheme='TIDE-##',
                           session_support=SessionSupport.SINGLE_SESSION,
                           is_physical=False, provisioning_type='MCS'):
        self.catalogs[catalog_name] = Catalog(
            name=catalog_name, is_physical=is_physical,
            provisioning_type=provisioning_type,
            session_support=session_support,
            provisioning_scheme_id=scheme_id)
        if scheme_id is not None:
            self.schemes[scheme_id] = ProvisioningScheme(
                id=scheme_id, name=catalog_name,
                identity_pool_id=identity_pool_id)
        if identity_pool_id is not None:
            self.identity_pools[identity_pool_id] = IdentityPool(
                id=identity_pool_id, name=catalog_name,
                naming_scheme=naming_scheme)
            self.accounts.setdefault(identity_pool_id, set())

    def complete_task(self, task_id):
        """
        Finish an active task, creating or deleting its VMs.
        """
        task = self.tasks[task_id]
        if not task['active']:
            return
        task['active'] = False
        if task['type'] == TaskType.CREATE:
            for account in task['targets']:
                if account in self.failing_vms:
                    task['failed'].append(
                        Failed(item=account, reason='hypervisor error'))
                    continue
                host = host_name_of(account)
                self.vms[host] = account
                task['items'].append(
                    TaskItem(host_name=host, account_name=account))
        else:
            for host in task['targets']:
                if host not in self.vms:
                    task['failed'].append(
                        Failed(item=host, reason='no such VM'))
                    continue
                account = self.vms.pop(host)
                task['items'].append(
                    TaskItem(host_name=host, account_name=account))

    # IPlatform

    def with_log(self, log):
        return self

    def get_pool(self, pool_name):
        if pool_name not in self.pools:
            return defer.fail(NoSuchPoolError(pool_name))
        p = self.pools[pool_name]
        members = [m for m in self.machines.values()
                   if m.pool_name == pool_name]
        return defer.succeed(Pool(
            name=pool_name, uid=p['uid'],
            total_machines=len(members),
            sessions=sum(m.session_count for m in members),
            session_support=p['session_support'],
            metadata=dict(p['metadata'])))

    @_recorded
    def set_pool_metadata(self, pool_name, items):
        if pool_name not in self.pools:
            return defer.fail(NoSuchPoolError(pool_name))
        self.pools[pool_name]['metadata'].update(items)
        return defer.succeed(None)

    def list_machines(self, pool_name=None, tag=None, session_count=None):
        return defer.succeed(sorted(
            (m for m in self.machines.values()
             if (pool_name is None or m.pool_name == pool_name) and
             (tag is None or tag in m.tags) and
             (session_count is None or m.session_count == session_count)),
            key=lambda m: m.name))

    def get_tag(self, name):
        return defer.succeed(name if name in self.tags else None)

    @_recorded
    def create_tag(self, name):
        self.tags.add(name)
        return defer.succeed(None)

    def get_catalog(self, catalog_name):
        if catalog_name not in self.catalogs:
            return defer.fail(NoSuchCatalogError(catalog_name))
        return defer.succeed(self.catalogs[catalog_name])

    def get_provisioning_scheme(self, scheme_id):
        return defer.succeed(self.schemes.get(scheme_id))

    def get_identity_pool(self, identity_pool_id):
        return defer.succeed(self.identity_pools.get(identity_pool_id))

    def _account_name(self, identity_pool_id, taken):
        scheme = self.identity_pools[identity_pool_id].naming_scheme
        existing = self.accounts[identity_pool_id] | taken
        for n in count(1):
            name = '{0}\\{1}'.format(self.domain, re.sub(
                '#+', lambda m: str(n).zfill(len(m.group())), scheme, 1))
            if name not in existing:
                return name

    @_recorded
    def create_accounts(self, identity_pool_id, count):
        succeeded, failed = [], []
        for _ in range(count):
            name = self._account_name(
                identity_pool_id, {f.item for f in failed})
            if self.account_quota is not None and self.account_quota <= 0:
                failed.append(Failed(item=name, reason='quota exceeded'))
                continue
            if self.account_quota is not None:
                self.account_quota -= 1
            self.accounts[identity_pool_id].add(name)
            succeeded.append(name)
        return defer.succeed(AccountResult(succeeded=succeeded,
                                           failed=failed))

    @_recorded
    def remove_accounts(self, identity_pool_id, account_names,
                        removal_option):
        succeeded, failed = [], []
        existing = self.accounts.get(identity_pool_id, set())
        for name in account_names:
            if name in existing:
                existing.remove(name)
                succeeded.append(name)
            else:
                failed.append(Failed(item=name, reason='no such account'))
        return defer.succeed(AccountResult(succeeded=succeeded,
                                           failed=failed))

    def _new_task(self, task_type, targets):
        task_id = 'task-{0}'.format(next(self._ids))
        self.tasks[task_id] = {'type': task_type, 'active': True,
                               'targets': list(targets), 'items': [],
                               'failed': [], 'polls': 0}
        return defer.succeed(task_id)

    @_recorded
    def create_vms(self, scheme_id, account_names):
        return self._new_task(TaskType.CREATE, account_names)

    @_recorded
    def remove_vms(self, scheme_id, host_names):
        return self._new_task(TaskType.REMOVE, host_names)

    def get_task(self, task_id):
        if task_id not in self.tasks:
            return defer.fail(NoSuchTaskError(task_id))
        task = self.tasks[task_id]
        task['polls'] += 1
        if (self.auto_complete_polls is not None and
                task['polls'] >= self.auto_complete_polls):
            self.complete_task(task_id)
        return defer.succeed(Task(
            id=task_id, type=task['type'], active=task['active'],
            items=task['items'], failed=task['failed']))

    @_recorded
    def register_machine(self, catalog_name, machine_name, host_name):
        if catalog_name not in self.catalogs:
            return defer.fail(NoSuchCatalogError(catalog_name))
        self.machines[machine_name] = Machine(
            name=machine_name, host_name=host_name)
        return defer.succeed(machine_name)

    @_recorded
    def tag_machine(self, tag, machine_name):
        m = self.machines[machine_name]
        self.machines[machine_name] = Machine(
            name=m.name, host_name=m.host_name, session_count=m.session_count,
            load_index=m.load_index, tags=m.tags.add(tag),
            pool_name=m.pool_name)
        return defer.succeed(None)

    @_recorded
    def add_to_pool(self, pool_name, machine_name):
        if pool_name not in self.pools:
            return defer.fail(NoSuchPoolError(pool_name))
        m = self.machines[machine_name]
        self.machines[machine_name] = Machine(
            name=m.name, host_name=m.host_name, session_count=m.session_count,
            load_index=m.load_index, tags=m.tags, pool_name=pool_name)
        return defer.succeed(None)

    @_recorded
    def remove_from_pool(self, pool_name, machine_names):
        for name in machine_names:
            m = self.machines[name]
            self.machines[name] = Machine(
                name=m.name, host_name=m.host_name,
                session_count=m.session_count, load_index=m.load_index,
                tags=m.tags)
        return defer.succeed(None)

    @_recorded
    def remove_machine_records(self, machine_names):
        for name in machine_names:
            self.machines.pop(name, None)
        return defer.succeed(None)
