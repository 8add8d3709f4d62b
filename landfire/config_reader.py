"""
Configuration Management
========================

This module provides the :class:`LandfireConfig` class for managing client
configuration: the LFPS API root, the requester email, the local cache
location and the polling defaults.

Settings are read from environment variables, optionally layered over a YAML
file named by ``LANDFIRE_CONFIG_FILE``. Environment variables always win.

Example
-------
Configuration is typically accessed through the client::

    from landfire import Landfire

    lf = Landfire()
    print(f"API Root: {lf.config.api_root}")
    print(f"Cache: {lf.config.cache_dir}")

See Also
--------
:class:`landfire.landfire.Landfire` : Main client class
"""

import logging
import os
from functools import cache
from urllib.parse import urlparse, urljoin, SplitResult

import yaml

logger = logging.getLogger(__name__)

DEFAULT_API_HOST = "lfps.usgs.gov"
DEFAULT_API_ROOT_PATH = "api"
DEFAULT_POLL_INTERVAL = 5
DEFAULT_REQUEST_TIMEOUT = 60
DEFAULT_OUTPUT_EXTENSION = ".tif"

CONFIG_KEYS = (
    "api_host",
    "api_root_path",
    "email",
    "cache_dir",
    "poll_interval",
    "timeout",
    "request_timeout",
    "sevenzip_executable",
    "output_extension",
)


def _get_api_host_url_scheme():
    """
    Get the URL scheme for LFPS API connections.

    Returns
    -------
    str
        URL scheme ('http' or 'https'). Defaults to 'https' unless
        overridden by the ``LANDFIRE_API_HOST_SCHEME`` environment variable.
    """
    scheme = os.environ.get("LANDFIRE_API_HOST_SCHEME", None)
    if not scheme:
        logger.debug("No url scheme defined in env var LANDFIRE_API_HOST_SCHEME; defaulting to 'https'.")
        scheme = "https"
    return scheme


def _get_api_root(api_host, root_path=DEFAULT_API_ROOT_PATH):
    """
    Construct the API root URL.

    Parameters
    ----------
    api_host : str
        The LFPS hostname, optionally with scheme.
    root_path : str
        Path of the API below the host.

    Returns
    -------
    str
        Full URL of the API root, with a trailing slash.

    Raises
    ------
    ValueError
        If an unsupported URL scheme is provided.
    """
    base_url = urlparse(api_host)
    supported_schemes = ("http", "https")
    if base_url.scheme and base_url.scheme not in supported_schemes:
        raise ValueError(f"Unsupported scheme for LFPS API host: {base_url.scheme!r}. Must be one of: {', '.join(map(repr, supported_schemes))}.")
    root_path = root_path.strip("/") + "/" if root_path.strip("/") else ""
    api_root = (
        urljoin(api_host if api_host.endswith("/") else api_host + "/", root_path)
        if base_url.netloc
        else SplitResult(
                scheme=_get_api_host_url_scheme(),
                netloc=base_url.path.strip("/"),
                path="/" + root_path,
                query='',
                fragment=''
            ).geturl()
    )
    return api_root


@cache
def _read_config_file(config_file):
    """
    Read and cache a YAML configuration file.

    Parameters
    ----------
    config_file : str
        Path of the YAML file.

    Returns
    -------
    dict
        Top-level mapping of the file, or an empty dict for an empty file.
    """
    logger.debug(f"Reading client config from: {config_file}")
    with open(config_file, "r") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping, not {type(config).__name__}")
    return config


def _to_number(name, value, kind=float):
    if value is None or value == "":
        return None
    try:
        number = kind(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: {value!r}")
    if number <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return number


class LandfireConfig:
    """
    LANDFIRE client configuration.

    Parameters
    ----------
    config_file : str, optional
        YAML file with default settings. Defaults to the value of the
        ``LANDFIRE_CONFIG_FILE`` environment variable, if set. Keys are the
        lower-case variable names without the ``LANDFIRE_`` prefix, e.g.
        ``email`` or ``cache_dir``.
    **overrides
        Explicit values for any attribute below; these take precedence over
        both the environment and the file.

    Attributes
    ----------
    api_host : str
        The configured API hostname.
    api_root : str
        Base URL for all API requests.
    email : str or None
        Requester identity sent with every job.
    cache_dir : str
        Root directory of the dataset cache.
    poll_interval : float
        Seconds between job status checks.
    timeout : float or None
        Seconds to wait for a job before giving up; ``None`` waits forever.
    request_timeout : float
        Seconds to wait for any single HTTP response.
    sevenzip_executable : str or None
        Path of the 7-Zip executable used to unpack archives.
    output_extension : str
        Extension of the primary raster inside an extracted archive.

    Notes
    -----
    Settings are read from these environment variables:

    - ``LANDFIRE_API_HOST``: Override API hostname
    - ``LANDFIRE_API_HOST_SCHEME``: Scheme for a host given without one
    - ``LANDFIRE_API_ROOT_PATH``: Path of the API below the host
    - ``LANDFIRE_EMAIL``: Requester email
    - ``LANDFIRE_CACHE_DIR``: Cache root directory
    - ``LANDFIRE_POLL_INTERVAL``: Poll interval in seconds
    - ``LANDFIRE_TIMEOUT``: Job timeout in seconds
    - ``LANDFIRE_REQUEST_TIMEOUT``: HTTP request timeout in seconds
    - ``LANDFIRE_SEVENZIP_EXECUTABLE``: 7-Zip executable
    - ``LANDFIRE_OUTPUT_EXTENSION``: Primary raster extension
    """

    def __init__(self, config_file=None, **overrides):
        config_file = config_file or os.environ.get("LANDFIRE_CONFIG_FILE")
        self.__config = dict(_read_config_file(config_file)) if config_file else {}
        unknown = set(overrides) - set(CONFIG_KEYS)
        if unknown:
            raise TypeError(f"Unknown configuration keys: {sorted(unknown)}")
        self.__config.update({k: v for k, v in overrides.items() if v is not None})
        self.__overrides = {k for k, v in overrides.items() if v is not None}

        self.api_host = self.get("api_host", DEFAULT_API_HOST)
        self.api_root = _get_api_root(self.api_host, self.get("api_root_path", DEFAULT_API_ROOT_PATH))
        self.email = self.get("email") or None
        self.cache_dir = os.path.expanduser(
            self.get("cache_dir", os.path.join("~", ".cache", "landfire"))
        )
        self.poll_interval = _to_number("poll_interval", self.get("poll_interval", DEFAULT_POLL_INTERVAL))
        self.timeout = _to_number("timeout", self.get("timeout"))
        self.request_timeout = _to_number(
            "request_timeout", self.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
        )
        self.sevenzip_executable = self.get("sevenzip_executable") or None
        self.output_extension = self.get("output_extension", DEFAULT_OUTPUT_EXTENSION)
        if not self.output_extension.startswith("."):
            self.output_extension = "." + self.output_extension

    def get(self, key, default=None):
        """
        Get a configuration value.

        Explicit overrides win, then the ``LANDFIRE_<KEY>`` environment
        variable, then the config file, then ``default``.

        Parameters
        ----------
        key : str
            Lower-case setting name, e.g. ``'email'``.
        default : any, optional
            Value returned when the setting is not found anywhere.

        Returns
        -------
        any
            The configuration value.
        """
        if key in self.__overrides and key in self.__config:
            return self.__config[key]
        env_value = os.environ.get(f"LANDFIRE_{key.upper()}")
        if env_value:
            return env_value
        value = self.__config.get(key)
        return default if value is None else value

    def endpoint(self, path):
        """
        Construct a full API endpoint URL.

        Parameters
        ----------
        path : str
            Endpoint path relative to the API root, e.g. ``'job/submit'``.

        Returns
        -------
        str
            Full URL for the endpoint.
        """
        return urljoin(self.api_root, str(path).strip("/"))

    def __repr__(self):
        return f"LandfireConfig(api_root={self.api_root!r}, email={self.email!r}, cache_dir={self.cache_dir!r})"
