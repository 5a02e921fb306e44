"""
An :class:`IPlatform` provider that talks JSON over HTTP to a platform
gateway, using treq.
"""
import json

from twisted.internet.defer import inlineCallbacks, returnValue

import treq

from zope.interface import implementer

from tide.log import log as default_log
from tide.platform.interface import (
    IPlatform, NoSuchCatalogError, NoSuchPoolError, NoSuchTaskError)
from tide.platform.model import (
    AccountResult, Catalog, IdentityPool, Machine, Pool, ProvisioningScheme,
    Task)
from tide.util.config import config_value
from tide.util.http import APIError, append_segments, check_success, headers


def _raise_on_404(error):
    """
    Return an errback that turns a 404 :class:`APIError` into ``error``.
    """
    def errback(failure):
        failure.trap(APIError)
        if failure.value.code == 404:
            raise error
        return failure
    return errback


def _none_on_404(failure):
    failure.trap(APIError)
    if failure.value.code == 404:
        return None
    return failure


@implementer(IPlatform)
class RestPlatform(object):
    """
    .. autointerface:: tide.platform.interface.IPlatform

    :ivar str url: root URL of the platform gateway
    :ivar str token: bearer token sent with every request
    :ivar treq: the treq module, or anything with the same API
    """

    def __init__(self, url, token, log=None, treq=treq):
        self.url = url
        self.token = token
        self.log = (log or default_log).bind(platform=url)
        self.treq = treq

    def with_log(self, log):
        return self.__class__(self.url, self.token, log=log, treq=self.treq)

    @classmethod
    def from_profile(cls, profile, log=None):
        """
        Build the platform client from a profile in the configuration.

        :param str profile: name of a ``profiles`` entry with ``url`` and
            ``token`` keys
        """
        return cls(config_value('profiles.{0}.url'.format(profile)),
                   config_value('profiles.{0}.token'.format(profile)),
                   log=log)

    @inlineCallbacks
    def _request(self, method, segments, data=None, params=None,
                 success_codes=(200,)):
        url = append_segments(self.url, *segments)
        kwargs = {'headers': headers(self.token)}
        if data is not None:
            kwargs['data'] = json.dumps(data).encode('utf-8')
        if params:
            kwargs['params'] = params
        response = yield self.treq.request(method, url, **kwargs)
        self.log.trivial('platform-request', method=method, url=url,
                         code=response.code)
        yield check_success(response, success_codes, self.treq)
        if response.code == 204:
            returnValue(None)
        body = yield self.treq.json_content(response)
        returnValue(body)

    def get_pool(self, pool_name):
        d = self._request('GET', ['pools', pool_name])
        d.addCallbacks(Pool.from_json, _raise_on_404(
            NoSuchPoolError(pool_name)))
        return d

    def set_pool_metadata(self, pool_name, items):
        d = self._request('PATCH', ['pools', pool_name, 'metadata'],
                          data=dict(items), success_codes=(200, 204))
        d.addCallbacks(lambda _: None,
                       _raise_on_404(NoSuchPoolError(pool_name)))
        return d

    def list_machines(self, pool_name=None, tag=None, session_count=None):
        params = {}
        if pool_name is not None:
            params['pool'] = pool_name
        if tag is not None:
            params['tag'] = tag
        if session_count is not None:
            params['sessionCount'] = str(session_count)
        d = self._request('GET', ['machines'], params=params)
        d.addCallback(
            lambda body: [Machine.from_json(m) for m in body['machines']])
        return d

    def get_tag(self, name):
        d = self._request('GET', ['tags', name])
        d.addCallbacks(lambda body: body['name'], _none_on_404)
        return d

    def create_tag(self, name):
        d = self._request('POST', ['tags'], data={'name': name},
                          success_codes=(201, 204))
        return d.addCallback(lambda _: None)

    def get_catalog(self, catalog_name):
        d = self._request('GET', ['catalogs', catalog_name])
        d.addCallbacks(Catalog.from_json, _raise_on_404(
            NoSuchCatalogError(catalog_name)))
        return d

    def get_provisioning_scheme(self, scheme_id):
        d = self._request('GET', ['provisioning-schemes', scheme_id])
        d.addCallbacks(ProvisioningScheme.from_json, _none_on_404)
        return d

    def get_identity_pool(self, identity_pool_id):
        d = self._request('GET', ['identity-pools', identity_pool_id])
        d.addCallbacks(IdentityPool.from_json, _none_on_404)
        return d

    def create_accounts(self, identity_pool_id, count):
        d = self._request(
            'POST', ['identity-pools', identity_pool_id, 'accounts'],
            data={'count': count})
        return d.addCallback(AccountResult.from_json)

    def remove_accounts(self, identity_pool_id, account_names,
                        removal_option):
        d = self._request(
            'POST', ['identity-pools', identity_pool_id, 'accounts',
                     'remove'],
            data={'accounts': list(account_names),
                  'removalOption': removal_option})
        return d.addCallback(AccountResult.from_json)

    def create_vms(self, scheme_id, account_names):
        d = self._request(
            'POST', ['provisioning-schemes', scheme_id, 'vms'],
            data={'accounts': list(account_names)}, success_codes=(202,))
        return d.addCallback(lambda body: body['taskId'])

    def remove_vms(self, scheme_id, host_names):
        d = self._request(
            'POST', ['provisioning-schemes', scheme_id, 'vms', 'remove'],
            data={'hostNames': list(host_names)}, success_codes=(202,))
        return d.addCallback(lambda body: body['taskId'])

    def get_task(self, task_id):
        d = self._request('GET', ['tasks', task_id])
        d.addCallbacks(Task.from_json, _raise_on_404(
            NoSuchTaskError(task_id)))
        return d

    def register_machine(self, catalog_name, machine_name, host_name):
        d = self._request(
            'POST', ['machines'],
            data={'catalogName': catalog_name, 'machineName': machine_name,
                  'hostName': host_name},
            success_codes=(201,))
        return d.addCallback(lambda body: body['name'])

    def tag_machine(self, tag, machine_name):
        d = self._request('POST', ['machines', machine_name, 'tags'],
                          data={'tag': tag}, success_codes=(204,))
        return d.addCallback(lambda _: None)

    def add_to_pool(self, pool_name, machine_name):
        d = self._request('POST', ['pools', pool_name, 'machines'],
                          data={'machineName': machine_name},
                          success_codes=(204,))
        d.addCallbacks(lambda _: None,
                       _raise_on_404(NoSuchPoolError(pool_name)))
        return d

    def remove_from_pool(self, pool_name, machine_names):
        d = self._request('POST', ['pools', pool_name, 'machines', 'remove'],
                          data={'machineNames': list(machine_names)},
                          success_codes=(204,))
        return d.addCallback(lambda _: None)

    def remove_machine_records(self, machine_names):
        d = self._request('POST', ['machines', 'remove'],
                          data={'machineNames': list(machine_names)},
                          success_codes=(204,))
        return d.addCallback(lambda _: None)
