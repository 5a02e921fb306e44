"""
Implement a global configuration API.
"""
import json

from toolz.dicttoolz import get_in

_config_data = {}


def set_config_data(data):
    """
    Set the global configuration data.

    :param dict data: The configuration data, probably loaded from some JSON.
    """
    global _config_data
    _config_data = data


def config_value(name, default=None):
    """
    :param str name: Name is a . separated path to a configuration value
        stored in a nested dictionary.
    :param default: returned when the path is not present

    :returns: The value specificed in the configuration file, or ``default``.
    """
    return get_in(name.split('.'), _config_data, default)


def load_config_file(path):
    """
    Read a JSON configuration file and make it the global configuration.

    :param str path: path of the JSON file
    :return: the loaded configuration ``dict``
    """
    with open(path) as f:
        data = json.load(f)
    set_config_data(data)
    return data
