import csv
import io
import logging
from functools import cache

import importlib_resources as resources
import requests
import yaml

from landfire.config_reader import LandfireConfig
from landfire.errors import TransportError

logger = logging.getLogger(__name__)


@cache
def attribute_table_urls():
    """
    Layer code -> CSV URL of the LANDFIRE attribute table for that layer.

    Read once from the packaged ``attribute_tables.yaml``.
    """
    text = resources.files("landfire.data").joinpath("attribute_tables.yaml").read_text()
    return dict(yaml.safe_load(text))


def attribute_table_url(code):
    """
    Returns the attribute table URL for a layer code

    Args:
        code (str): Layer code such as 'FBFM40' or 'EVT'. Case-insensitive.

    Returns:
        str: URL of the CSV table.

    Raises:
        ValueError: If no table is published for the code.
    """
    urls = attribute_table_urls()
    key = str(code).upper()
    if key not in urls:
        raise ValueError(f"No attribute table for layer '{code}'. Available: {', '.join(sorted(urls))}")
    return urls[key]


def parse_attribute_table(text):
    """Parse CSV text into a list of row dicts keyed by the header row."""
    reader = csv.DictReader(io.StringIO(text))
    return [dict(row) for row in reader]


def read_attribute_table(code, config: LandfireConfig = None, session=None):
    """
    Downloads and parses the attribute table of a layer

    Args:
        code (str): Layer code such as 'FBFM40'.
        config (LandfireConfig, optional): Used for the request timeout.
        session (requests.Session, optional): Session to send the request with.

    Returns:
        list: One dict per table row, e.g. [{'VALUE': '91', 'FBFM40': 'NB1', ...}, ...]

    Raises:
        ValueError: If no table is published for the code.
        TransportError: If the table could not be downloaded.
    """
    url = attribute_table_url(code)
    timeout = config.request_timeout if config is not None else None
    sender = session if session is not None else requests
    logger.debug(f"GET request sent to {url}")
    try:
        response = sender.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise TransportError(f"attribute table {code} from {url}: {e}", e) from e
    rows = parse_attribute_table(response.content.decode("utf-8-sig", errors="replace"))
    logger.debug(f"Read {len(rows)} rows from attribute table {code}")
    return rows
