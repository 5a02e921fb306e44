"""
Errors raised while autoscaling a pool.
"""


class ConfigurationError(Exception):
    """
    The autoscale configuration of a pool, or the options given for it, are
    invalid. Nothing has been written to the pool when this is raised.
    """


class CorruptMetadataError(Exception):
    """
    A key of the pool's metadata record holds a value that cannot be parsed.

    :ivar str key: the full metadata key
    :ivar value: the value found under the key, or None if it is missing
    """
    def __init__(self, key, value):
        super(CorruptMetadataError, self).__init__(
            "Corrupt autoscale metadata {0}={1!r}".format(key, value))
        self.key = key
        self.value = value


class TaskTypeMismatchError(Exception):
    """
    The pending task of a pool is not of the type its state expects.
    """
    def __init__(self, task_id, actual, expected):
        super(TaskTypeMismatchError, self).__init__(
            "Task {0} is a {1} task, expected {2}".format(
                task_id, actual.name, expected.name))
        self.task_id = task_id
        self.actual = actual
        self.expected = expected
