"""
Twisted Application plugin that autoscales pools on an interval.
"""

from twisted.application.internet import TimerService
from twisted.internet import reactor
from twisted.python import usage

from txeffect import perform

from tide.cli import PLATFORMS, make_platform
from tide.effect_dispatcher import get_full_dispatcher
from tide.log import log
from tide.scaling.config import ScalingOptions
from tide.scaling.driver import process_pools
from tide.util.config import config_value, load_config_file


DEFAULT_INTERVAL = 300
"""Seconds between runs when neither the options nor the config say."""


class Options(usage.Options):
    """
    Options for the tide-scheduler service.
    """

    optParameters = [
        ["config", "c", "config.json", "path to JSON configuration file."],
        ["pools", "p", None, "';'-separated names of the pools to process."],
        ["profile", None, "default",
         "name of the platform profile in the configuration file."],
        ["platform", None, "rest", "platform to talk to: 'rest' or 'mock'."],
        ["interval", "i", None, "seconds between runs.", float],
    ]

    def postOptions(self):
        """
        Load the configuration file.
        """
        if not self['pools']:
            raise usage.UsageError("At least one pool is required")
        if self['platform'] not in PLATFORMS:
            raise usage.UsageError(
                "--platform must be one of {0}".format(', '.join(PLATFORMS)))
        load_config_file(self['config'])
        self['pool_names'] = [
            name.strip() for name in self['pools'].split(';') if name.strip()]


def run_once(dispatcher, pool_names, log=log):
    """
    Process the pools once. Configuration is never changed by scheduled
    runs.

    :return: Deferred that fires when every pool is processed; errors are
        logged, not propagated, so that the next run still happens
    """
    d = perform(dispatcher, process_pools(pool_names, ScalingOptions()))
    d.addErrback(log.err, 'scheduler-run-error')
    return d


def makeService(config, reactor=reactor):
    """
    Set up the tide-scheduler service.

    The timer does not start a run while the previous one is still going.
    """
    platform = make_platform(config['platform'], config['profile'])
    dispatcher = get_full_dispatcher(reactor, platform, log)
    interval = config['interval'] or config_value(
        'scheduler.interval', DEFAULT_INTERVAL)
    service = TimerService(interval, run_once, dispatcher,
                           config['pool_names'])
    service.clock = reactor
    return service
