"""
Bound logging on top of Twisted's legacy ``log.msg``/``log.err``.
"""

from functools import partial


class BoundLog(object):
    """
    Twisted's ``msg`` and ``err``, or anything called the same way, with
    fields added to every call.

    :ivar msg: callable logging a message type with fields
    :ivar err: callable logging a failure with a message type and fields
    """
    def __init__(self, msg, err):
        self.msg = msg
        self.err = err

    def bind(self, **fields):
        """
        :return: a :class:`BoundLog` adding ``fields`` to the ones this one
            adds
        """
        return BoundLog(partial(self.msg, **fields),
                        partial(self.err, **fields))

    def trivial(self, msg, **fields):
        """
        Log a message that is only emitted in debug mode.
        """
        return self.msg(msg, trivial=True, **fields)
