"""
HTTP utils, such as formulation of URLs
"""

from itertools import chain
from urllib.parse import quote

import treq

from tide.log.formatters import serialize_to_jsonable


def append_segments(uri, *segments):
    """
    Append segments to URI in a reasonable way.

    :param str uri: base URI with or without a trailing /.
    :param segments: One or more segments to append to the base URI. Each
        segment is quoted, so names with spaces or backslashes are safe.

    :return: complete URI as str.
    """
    return '/'.join(chain([uri.rstrip('/')],
                          (quote(str(s), safe='') for s in segments)))


class APIError(Exception):
    """
    An error raised when a non-success response is returned by the API.

    :param int code: HTTP Response code for this error.
    :param str body: HTTP Response body for this error or None.
    :param Headers headers: HTTP Response headers for this error, or None
    """
    def __init__(self, code, body, headers=None):
        Exception.__init__(
            self,
            'API Error code={0!r}, body={1!r}, headers={2!r}'.format(
                code, body, headers))

        self.code = code
        self.body = body
        self.headers = headers


@serialize_to_jsonable.register(APIError)
def _serialize_api_error(error):
    return {"code": error.code, "body": error.body}


def check_success(response, success_codes, _treq=treq):
    """
    Convert an HTTP response to an appropriate APIError if
    the response code does not match an expected success code.

    This is intended to be used as a callback for a deferred that fires with
    an IResponse provider.

    :param IResponse response: The response to check.
    :param list success_codes: A list of int HTTP response codes that indicate
        "success".
    :param _treq: the treq module, or anything with the same API

    :return: response or a deferred that errbacks with an APIError.
    """
    def _raise_api_error(body):
        raise APIError(response.code, body, response.headers)

    if response.code not in success_codes:
        return _treq.content(response).addCallback(_raise_api_error)

    return response


def headers(auth_token=None):
    """
    Generate an appropriate set of headers given an auth_token.

    :param str auth_token: The auth_token or None.
    :return: A dict of common headers.
    """
    h = {'content-type': ['application/json'],
         'accept': ['application/json'],
         'User-Agent': ['Tide/0.1']}

    if auth_token is not None:
        h['authorization'] = ['Bearer {0}'.format(auth_token)]

    return h
