"""
Package for all tide specific logging functionality.
"""

from twisted.python.log import err, msg

from tide.log.bound import BoundLog
from tide.log.setup import observer_factory, observer_factory_debug


log = BoundLog(msg, err).bind(system='tide')


__all__ = ['observer_factory', 'observer_factory_debug', 'log']
