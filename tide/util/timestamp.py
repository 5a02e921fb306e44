"""
Utilities for consistently handling timestamp formats in tide
"""

from datetime import datetime, timezone


def now():
    """
    :return: the current UTC time in ISO8601 zulu timestamp format
    """
    # isoformat() of a naive datetime carries no time zone, so the zulu
    # suffix is added by hand
    return "{0}Z".format(
        datetime.now(timezone.utc).replace(tzinfo=None).isoformat())
