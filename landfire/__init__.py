"""
LANDFIRE Python Client Library
==============================

**landfire-py** is a Python client for the LANDFIRE Product Service (LFPS),
which serves wildland fire, vegetation and disturbance rasters for the
United States.

The library provides:

* **Product Discovery**: List and filter the LANDFIRE product catalog
* **Job Execution**: Submit jobs for an area of interest and wait for them
* **Data Access**: Download and extract job output archives
* **Caching**: Reuse extracted output for identical jobs

Quick Start
-----------

Basic usage::

    from landfire import Landfire, BoundingBox

    lf = Landfire()
    prods = lf.products(name="13 Anderson Fire Behavior Fuel Models")
    data = lf.dataset(prods, BoundingBox(-105.69, -105.05, 39.91, 40.26))
    tif = lf.retrieve(data)

Main Classes
------------

:class:`~landfire.landfire.Landfire`
    Main client class for all operations.

:class:`~landfire.job.Job`
    An immutable job description with a content hash.

:class:`~landfire.dataset.Dataset`
    A job together with its cache paths.

Environment Variables
---------------------

- ``LANDFIRE_EMAIL``: Requester email (required to build jobs)
- ``LANDFIRE_API_HOST``: LFPS API hostname
- ``LANDFIRE_CACHE_DIR``: Dataset cache root

See :class:`~landfire.config_reader.LandfireConfig` for the full list.
"""

__version__ = "0.3.0"
__license__ = "Apache-2.0"

from landfire.config_reader import LandfireConfig
from landfire.dataset import Dataset, DatasetCache
from landfire.job import Job
from landfire.landfire import Landfire
from landfire.products import Product
from landfire.utils.aoi import BoundingBox

__all__ = ["Landfire", "LandfireConfig", "Job", "Dataset", "DatasetCache", "Product", "BoundingBox", "__version__"]
