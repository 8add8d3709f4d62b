"""
LANDFIRE Python Client
======================

This module provides the main entry point for interacting with the LANDFIRE
Product Service (LFPS) API.

The :class:`Landfire` class is the primary interface for all operations:

* Checking service health and listing data products
* Submitting, monitoring and cancelling jobs
* Downloading and extracting job output
* Caching extracted datasets by job content
* Reading layer attribute tables

Example
-------
Basic usage::

    from landfire import Landfire, BoundingBox

    lf = Landfire()

    # Pick products
    prods = lf.products(name="13 Anderson Fire Behavior Fuel Models")

    # Fetch (or reuse) a dataset for an area of interest
    data = lf.dataset(prods, BoundingBox(-105.69, -105.05, 39.91, 40.26))
    tif = lf.retrieve(data)

Note
----
Jobs require a requester email, read from the ``LANDFIRE_EMAIL`` environment
variable unless passed explicitly.

See Also
--------
:class:`landfire.job.Job` : Class representing a job
:class:`landfire.dataset.Dataset` : A job with its cache paths
"""

import logging
import os
import tempfile

from landfire.attribute_tables import read_attribute_table
from landfire.client import JobClient
from landfire.config_reader import LandfireConfig
from landfire.dataset import DatasetCache
from landfire.extract import ArchiveExtractor
from landfire.job import Job
from landfire.products import filter_products

logger = logging.getLogger(__name__)


class Landfire(object):
    """
    Main client class for interacting with the LFPS API.

    Parameters
    ----------
    config : LandfireConfig, optional
        Client configuration. Defaults to one read from the environment.
    session : requests.Session, optional
        Session used for every HTTP request.

    Attributes
    ----------
    config : LandfireConfig
        Configuration object containing API endpoints and settings.
    client : JobClient
        Low-level job endpoint client.
    extractor : ArchiveExtractor
        7-Zip based archive extractor.
    cache : DatasetCache
        Local dataset cache rooted at ``config.cache_dir``.

    Examples
    --------
    Initialize with default settings::

        >>> from landfire import Landfire
        >>> lf = Landfire()

    Initialize with an explicit cache location::

        >>> lf = Landfire(LandfireConfig(cache_dir='/data/landfire'))

    Environment Variables
    ---------------------
    LANDFIRE_API_HOST : str
        Override the default LFPS API host.
    LANDFIRE_EMAIL : str
        Requester email sent with every job.
    LANDFIRE_CACHE_DIR : str
        Root of the dataset cache.
    """

    def __init__(self, config: LandfireConfig = None, session=None):
        self.config = config if config is not None else LandfireConfig()
        self._session = session
        self.client = JobClient(self.config, session=session)
        self.extractor = ArchiveExtractor(config=self.config)
        self.cache = DatasetCache(self.client, self.extractor, config=self.config)
        self._products = None

    def healthcheck(self):
        """
        Check that the LFPS API is up.

        Returns
        -------
        dict
            The service health report.
        """
        return self.client.healthcheck()

    def products(self, only_latest=True, refresh=False, **criteria):
        """
        List LANDFIRE products, optionally filtered.

        The catalog is fetched from the service once per client and reused.

        Parameters
        ----------
        only_latest : bool, optional
            Keep only the newest version of each product. Default is ``True``.
        refresh : bool, optional
            Fetch the catalog again instead of reusing the cached copy.
        **criteria
            Field filters, see :func:`~landfire.products.filter_products`.
            Boolean fields match exactly, string fields by substring.

        Returns
        -------
        list of Product

        Examples
        --------
        ::

            >>> lf.products(name="Vegetation")
            >>> lf.products(theme="Fuel", ak=True)
        """
        if self._products is None or refresh:
            self._products = self.client.fetch_products()
        return filter_products(self._products, only_latest=only_latest, **criteria)

    def job(self, products, area_of_interest, **kwargs):
        """
        Build a :class:`~landfire.job.Job`, using this client's configuration
        for the requester email when none is given.
        """
        kwargs.setdefault("config", self.config)
        return Job(products, area_of_interest, **kwargs)

    def submit_job(self, job):
        """
        Submit a job to LFPS.

        Returns
        -------
        str
            The job id.
        """
        return self.client.submit(job)

    def get_job_status(self, job_id):
        """
        Get the current status of a job.

        Returns
        -------
        JobStatusSnapshot
        """
        return self.client.poll_status(job_id)

    def cancel_job(self, job_id):
        """
        Cancel a queued or running job. Best effort.

        Returns
        -------
        CancelAck
        """
        return self.client.cancel(job_id)

    def wait_for_job(self, job_id, poll_interval=None, timeout=None):
        """
        Block until a job completes and return the URL of its output archive.

        See :meth:`~landfire.client.JobClient.await_completion`.
        """
        return self.client.await_completion(job_id, poll_interval, timeout)

    def download(self, job, file=None, poll_interval=None, timeout=None):
        """
        Submit a job, wait for it and download its output archive.

        Unlike :meth:`retrieve`, nothing is cached: every call submits a new
        job.

        Parameters
        ----------
        job : Job
            The job to run.
        file : str, optional
            Destination of the archive. Defaults to a new temporary ``.zip``,
            which is removed again if the download fails.
        poll_interval, timeout : float, optional
            See :meth:`wait_for_job`.

        Returns
        -------
        str
            Path of the downloaded archive.
        """
        temporary = file is None
        if temporary:
            fd, file = tempfile.mkstemp(suffix=".zip", prefix="landfire_")
            os.close(fd)
        try:
            job_id = self.submit_job(job)
            url = self.wait_for_job(job_id, poll_interval, timeout)
            return self.client.fetch_artifact(url, file)
        except Exception:
            if temporary and os.path.exists(file):
                os.remove(file)
            raise

    def extract(self, file, dir=None):
        """
        Extract an archive and return the directory it was extracted to.

        ``dir`` defaults to a new temporary directory.
        """
        if dir is None:
            dir = tempfile.mkdtemp(prefix="landfire_")
        return self.extractor.extract(file, dir)

    def dataset(self, products, area_of_interest, **kwargs):
        """
        Describe a cached dataset for ``products`` over ``area_of_interest``.

        No network access happens here; call :meth:`retrieve` to fill it.

        Parameters
        ----------
        products : list of Product
            Products to request.
        area_of_interest : int, str, BoundingBox or geometry
            See :func:`~landfire.utils.aoi.normalize_area_of_interest`.
        **kwargs
            Job options (``email``, ``output_projection``,
            ``resample_resolution``, ``edit_rule``, ``edit_mask``,
            ``priority_code``).

        Returns
        -------
        Dataset
        """
        return self.cache.dataset(products, area_of_interest, **kwargs)

    def retrieve(self, dataset, poll_interval=None, timeout=None):
        """
        Download and extract a dataset unless it is already cached.

        Returns
        -------
        str
            Path of the dataset's primary raster.

        See Also
        --------
        :meth:`~landfire.dataset.DatasetCache.retrieve`
        """
        return self.cache.retrieve(dataset, poll_interval, timeout)

    async def retrieve_async(self, dataset, poll_interval=None, timeout=None):
        return await self.cache.retrieve_async(dataset, poll_interval, timeout)

    def attribute_table(self, code):
        """
        Read the attribute table of a layer.

        Parameters
        ----------
        code : str
            Layer code, e.g. ``'FBFM40'`` or ``'EVT'``.

        Returns
        -------
        list of dict
            One dict per table row.
        """
        return read_attribute_table(code, self.config, session=self._session)
