"""
Run one autoscaling step on some pools, then exit.

Examples:
`tide-autoscale -c config.json -p "pool1;pool2"`
moves both pools one step along their autoscaling
`tide-autoscale -c config.json -p pool1 --machine-source cat1
--high-watermark 75 --low-watermark 25`
starts autoscaling pool1, or changes its configuration
"""

import sys

from twisted.internet import task
from twisted.python import usage
from twisted.python.log import startLoggingWithObserver

from txeffect import perform

from tide.effect_dispatcher import get_full_dispatcher
from tide.log import log, observer_factory, observer_factory_debug
from tide.platform.mock import MockPlatform
from tide.platform.rest import RestPlatform
from tide.scaling.config import ScalingOptions, validate_options
from tide.scaling.driver import process_pools
from tide.scaling.errors import ConfigurationError
from tide.util.config import config_value, load_config_file


PLATFORMS = ('rest', 'mock')


class Options(usage.Options):
    """
    Options for a single autoscaling run.
    """

    optFlags = [
        ["debug", "d", "Log trivial events too, as indented JSON."],
    ]

    optParameters = [
        ["pools", "p", None, "';'-separated names of the pools to process."],
        ["config", "c", None, "Path to JSON configuration file."],
        ["profile", None, "default",
         "Name of the platform profile in the configuration file."],
        ["platform", None, "rest",
         "Platform to talk to: 'rest', or 'mock' for a dry run against the "
         "'mock' fixture of the configuration file."],
        ["high-watermark", None, None,
         "Load percentage above which machines are added.", int],
        ["low-watermark", None, None,
         "Load percentage below which machines are removed.", int],
        ["max-machines", None, None,
         "Most machines autoscaling may own; 0 for no limit.", int],
        ["machine-source", None, None,
         "Catalog to provision new machines from."],
        ["tag", None, None, "Tag marking the machines autoscaling owns."],
        ["log-sink", None, "-", "File to log to, '-' for stdout."],
    ]

    def postOptions(self):
        """
        Check the options, and load the configuration file.
        """
        if not self['pools']:
            raise usage.UsageError("At least one pool is required")
        self['pool_names'] = [
            name.strip() for name in self['pools'].split(';') if name.strip()]
        if not self['pool_names']:
            raise usage.UsageError("At least one pool is required")

        if self['platform'] not in PLATFORMS:
            raise usage.UsageError(
                "--platform must be one of {0}".format(', '.join(PLATFORMS)))

        if self['config'] is not None:
            load_config_file(self['config'])
        if (self['platform'] == 'rest' and
                config_value('profiles.{0}.url'.format(self['profile']))
                is None):
            raise usage.UsageError(
                "No URL configured for profile {0}".format(self['profile']))

        self['scaling_options'] = ScalingOptions(
            high_watermark=self['high-watermark'],
            low_watermark=self['low-watermark'],
            max_machines=self['max-machines'],
            machine_source=self['machine-source'],
            tag=self['tag'])
        try:
            validate_options(self['scaling_options'])
        except ConfigurationError as e:
            raise usage.UsageError(str(e))
        if len(self['pool_names']) > 1 and \
                self['scaling_options'].has_updates():
            raise usage.UsageError(
                "Configuration can only be changed on one pool at a time")


def make_platform(platform, profile):
    """
    :param str platform: one of :data:`PLATFORMS`
    :param str profile: profile to take the platform's URL and token from
    :return: an :class:`IPlatform` provider
    """
    if platform == 'mock':
        return MockPlatform.from_fixture(config_value('mock', {}))
    return RestPlatform.from_profile(profile)


def start_logging(reactor, log_sink, debug):
    """
    Send Twisted's log events through tide's observer chain to
    ``log_sink``. A log file is closed once ``reactor`` has shut down.
    """
    if log_sink == '-':
        stream = sys.stdout
    else:
        stream = open(log_sink, 'a')
        reactor.addSystemEventTrigger('after', 'shutdown', stream.close)
    factory = observer_factory_debug if debug else observer_factory
    startLoggingWithObserver(factory(stream), setStdout=False)


def run(reactor, options):
    """
    Process the pools named in ``options``.

    :return: Deferred that fires with ``dict`` of pool name to its resulting
        record
    """
    platform = make_platform(options['platform'], options['profile'])
    dispatcher = get_full_dispatcher(reactor, platform, log)
    return perform(
        dispatcher,
        process_pools(options['pool_names'], options['scaling_options']))


def main(argv=None):
    """
    Entry point of ``tide-autoscale``.
    """
    options = Options()
    try:
        options.parseOptions(argv)
    except usage.UsageError as e:
        sys.stderr.write('{0}\n{1}: {2}\n'.format(options, sys.argv[0], e))
        raise SystemExit(2)

    from twisted.internet import reactor
    start_logging(reactor, options['log-sink'], options['debug'])
    task.react(run, (options,))


if __name__ == '__main__':
    main()
