import os
import pathlib

import pytest

from landfire.config_reader import LandfireConfig
from landfire.products import Product

API_HOST = "https://lfps.test"
API_ROOT = f"{API_HOST}/api/"
EMAIL = "tester@example.org"


@pytest.fixture(autouse=True)
def landfire_env(monkeypatch) -> None:
    """Keep the developer's LANDFIRE_* settings out of the tests."""
    for key in list(os.environ):
        if key.startswith("LANDFIRE_"):
            monkeypatch.delenv(key)


@pytest.fixture(scope="function")
def config(tmp_path: pathlib.Path) -> LandfireConfig:
    return LandfireConfig(
        api_host=API_HOST,
        email=EMAIL,
        cache_dir=str(tmp_path / "cache"),
        poll_interval=0.01,
        request_timeout=5,
    )


@pytest.fixture(scope="session")
def fbfm13() -> Product:
    return Product(
        name="13 Anderson Fire Behavior Fuel Models",
        theme="Fuel",
        layer="240FBFM13",
        version="2.4.0",
        conus=True,
        ak=True,
        hi=True,
        geo_areas="CONUS, AK, HI",
    )


@pytest.fixture(scope="session")
def evt() -> Product:
    return Product(
        name="Existing Vegetation Type",
        theme="Vegetation",
        layer="240EVT",
        version="2.4.0",
        conus=True,
        ak=False,
        hi=True,
        geo_areas="CONUS, HI",
    )
