import logging
from enum import Enum

import requests

from landfire.config_reader import LandfireConfig
from landfire.errors import TransportError

logger = logging.getLogger(__name__)


# TODO: Replace with http.HTTPMethod once we drop Python 3.10
class HTTPMethod(Enum):
    POST = 'POST'
    GET = 'GET'


POST = HTTPMethod.POST
GET = HTTPMethod.GET

JSON_CONTENT_TYPE = 'application/json'


def generate_headers(content_type=None):
    api_header = {
        'Accept': JSON_CONTENT_TYPE,
    }
    if content_type:
        api_header['Content-Type'] = content_type
    return api_header


def check_response(response):
    """
    Raise :class:`~landfire.errors.TransportError` for a non-2xx response.

    :param response: a ``requests.Response``
    :return: the same response
    """
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        raise TransportError(f"{response.status_code} from {response.url}: {response.text[:200]}", e) from e
    return response


def read_json(response):
    """Decode a JSON body, returning ``None`` when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        logger.debug(f"Response from {response.url} is not JSON: {response.text[:200]!r}")
        return None


def make_request(url, config: LandfireConfig, request_type: HTTPMethod = HTTPMethod.GET, content_type=None,
                 session=None, **kwargs):
    """
    Issue one HTTP request against the LFPS API.

    Network-level failures (connection refused, DNS, timeouts) are raised as
    :class:`~landfire.errors.TransportError`; the response is returned as-is
    otherwise, whatever its status code.
    """
    headers = generate_headers(content_type)
    logger.debug(f"{request_type.value} request sent to {url}")
    logger.debug('headers:')
    logger.debug(headers)
    if 'data' in kwargs:
        logger.debug('body:')
        logger.debug(kwargs['data'])
    sender = session if session is not None else requests
    try:
        response = sender.request(
            method=request_type.value,
            url=url,
            headers=headers,
            timeout=config.request_timeout,
            **kwargs
        )
    except requests.RequestException as e:
        raise TransportError(f"{request_type.value} {url}: {e}", e) from e
    logger.debug(f"status code {response.status_code}")
    return response
