"""
Interface to the orchestration platform that owns pools, machines and
provisioning.
"""
from zope.interface import Interface


class NoSuchPoolError(Exception):
    """
    Error to be raised when attempting operations on a pool that does not
    exist.
    """
    def __init__(self, pool_name):
        super(NoSuchPoolError, self).__init__(
            "No such pool: {0}".format(pool_name))
        self.pool_name = pool_name


class NoSuchCatalogError(Exception):
    """
    Error to be raised when a catalog cannot be found by name.
    """
    def __init__(self, catalog_name):
        super(NoSuchCatalogError, self).__init__(
            "No such catalog: {0}".format(catalog_name))
        self.catalog_name = catalog_name


class NoSuchTaskError(Exception):
    """
    Error to be raised when an asynchronous task id is unknown.
    """
    def __init__(self, task_id):
        super(NoSuchTaskError, self).__init__(
            "No such task: {0}".format(task_id))
        self.task_id = task_id


class IPlatform(Interface):
    """
    The operations tide needs from the orchestration platform. Every method
    returns a Deferred.
    """

    def get_pool(pool_name):
        """
        :return: Deferred that fires with a :class:`Pool`
        :raises: :class:`NoSuchPoolError`
        """

    def set_pool_metadata(pool_name, items):
        """
        Set the given keys of the pool's metadata map, leaving other keys
        alone.

        :param dict items: str keys to str values
        :return: Deferred that fires with None
        """

    def list_machines(pool_name=None, tag=None, session_count=None):
        """
        List machines matching all of the given filters. A ``None`` filter
        is not applied.

        :return: Deferred that fires with a list of :class:`Machine`
        """

    def get_tag(name):
        """
        :return: Deferred that fires with the tag name, or None if the tag
            does not exist
        """

    def create_tag(name):
        """
        :return: Deferred that fires with None
        """

    def get_catalog(catalog_name):
        """
        :return: Deferred that fires with a :class:`Catalog`
        :raises: :class:`NoSuchCatalogError`
        """

    def get_provisioning_scheme(scheme_id):
        """
        :return: Deferred that fires with a :class:`ProvisioningScheme`, or
            None if no scheme has that id
        """

    def get_identity_pool(identity_pool_id):
        """
        :return: Deferred that fires with an :class:`IdentityPool`, or None
            if no identity pool has that id
        """

    def create_accounts(identity_pool_id, count):
        """
        Create ``count`` new identity accounts named by the identity pool's
        naming scheme.

        :return: Deferred that fires with an :class:`AccountResult`
        """

    def remove_accounts(identity_pool_id, account_names, removal_option):
        """
        Remove identity accounts from the identity pool.

        :param str removal_option: ``Delete`` to also delete them from the
            directory
        :return: Deferred that fires with an :class:`AccountResult`
        """

    def create_vms(scheme_id, account_names):
        """
        Start an asynchronous task creating one VM per account.

        :return: Deferred that fires with the task id
        """

    def remove_vms(scheme_id, host_names):
        """
        Start an asynchronous task deleting the named VMs.

        :return: Deferred that fires with the task id
        """

    def get_task(task_id):
        """
        :return: Deferred that fires with a :class:`Task`
        :raises: :class:`NoSuchTaskError`
        """

    def register_machine(catalog_name, machine_name, host_name):
        """
        Add a machine record to the machine directory, against a catalog.

        :return: Deferred that fires with the registered machine name
        """

    def tag_machine(tag, machine_name):
        """
        :return: Deferred that fires with None
        """

    def add_to_pool(pool_name, machine_name):
        """
        :return: Deferred that fires with None
        """

    def remove_from_pool(pool_name, machine_names):
        """
        :return: Deferred that fires with None
        """

    def remove_machine_records(machine_names):
        """
        Remove machines from the machine directory.

        :return: Deferred that fires with None
        """

    def with_log(log):
        """
        :param BoundLog log: the log of the caller, bound with its fields
        :return: a provider of :class:`IPlatform` talking to the same
            platform and logging to ``log``. This is not a Deferred.
        """
