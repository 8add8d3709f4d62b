"""
Datasets and the local dataset cache
====================================

A :class:`Dataset` pairs a :class:`~landfire.job.Job` with two paths derived
from the job's content hash::

    <cache_dir>/job_<hash>.zip    downloaded archive
    <cache_dir>/job_<hash>/       extracted contents

:class:`DatasetCache` fills those paths on demand. A dataset whose directory
exists is *warm* and is served without touching the network; a *cold*
dataset is submitted, awaited, downloaded and extracted first. Because the
directory name encodes the job hash, an existing directory always belongs to
an identical job.

Example
-------
::

    from landfire import Landfire, BoundingBox

    lf = Landfire()
    prods = lf.products(name="13 Anderson Fire Behavior Fuel Models")
    data = lf.dataset(prods, BoundingBox(-105.69, -105.05, 39.91, 40.26))
    tif = lf.retrieve(data)   # submits and downloads on the first call only

Notes
-----
Extraction writes into a ``job_<hash>.partial`` staging directory that is
renamed into place only after 7-Zip succeeds, so an interrupted run never
leaves a half-filled directory that a later call would take for a warm
cache. Concurrent cold retrievals of the same job are not coordinated; each
submits its own remote job. Serialize them externally if that matters.
"""

import asyncio
import contextlib
import logging
import os
import shutil
from pathlib import Path

from landfire.client import JobClient
from landfire.config_reader import LandfireConfig
from landfire.errors import AmbiguousOutput, ExtractionFailed, LandfireError
from landfire.extract import ArchiveExtractor
from landfire.job import Job

logger = logging.getLogger(__name__)


class Dataset:
    """
    A job together with its deterministic cache paths.

    Building a dataset performs no I/O; see :meth:`DatasetCache.retrieve`.

    Parameters
    ----------
    job : Job
        The job whose output this dataset holds.
    cache_dir : str or os.PathLike
        Root directory of the cache.
    """

    def __init__(self, job: Job, cache_dir):
        cache_dir = os.path.abspath(os.path.expanduser(os.fspath(cache_dir)))
        self.__job = job
        self.__file = os.path.join(cache_dir, f"job_{job.hexdigest}.zip")
        self.__dir = os.path.join(cache_dir, f"job_{job.hexdigest}")

    @property
    def job(self):
        return self.__job

    @property
    def products(self):
        return list(self.__job.layers)

    @property
    def file(self):
        return self.__file

    @property
    def dir(self):
        return self.__dir

    def files(self):
        """Paths of the entries in the extraction directory (empty when cold)."""
        if not os.path.isdir(self.dir):
            return []
        return sorted(os.path.join(self.dir, name) for name in os.listdir(self.dir))

    def __eq__(self, other):
        if not isinstance(other, Dataset):
            return NotImplemented
        return self.job == other.job and self.dir == other.dir

    def __hash__(self):
        return hash((self.job, self.dir))

    def __str__(self):
        lines = ["Landfire.Dataset", f" Area of Interest: {self.job.area_of_interest}"]
        lines.extend(f" - {p}" for p in self.products)
        lines.append(f" Directory: {self.dir}")
        return "\n".join(lines)

    def __repr__(self):
        return f"Dataset(job={self.job.hexdigest!r}, dir={self.dir!r})"


class DatasetCache:
    """
    Content-addressed cache of extracted job outputs.

    Parameters
    ----------
    client : JobClient, optional
        Client used for cold retrievals. Built from ``config`` when omitted.
    extractor : ArchiveExtractor, optional
        Extractor used for cold retrievals. Built from ``config`` when omitted.
    cache_dir : str, optional
        Cache root. Defaults to ``config.cache_dir``.
    output_extension : str, optional
        Extension of the primary raster. Defaults to
        ``config.output_extension`` (``'.tif'``).
    config : LandfireConfig, optional
        Defaults to the client's configuration, or the environment.
    """

    def __init__(self, client: JobClient = None, extractor: ArchiveExtractor = None, cache_dir=None,
                 output_extension=None, config: LandfireConfig = None):
        if config is None:
            config = client.config if client is not None and hasattr(client, "config") else LandfireConfig()
        self.config = config
        self.client = client if client is not None else JobClient(config)
        self.extractor = extractor if extractor is not None else ArchiveExtractor(config=config)
        self.cache_dir = os.fspath(cache_dir) if cache_dir is not None else config.cache_dir
        self.output_extension = output_extension or config.output_extension

    def dataset(self, products, area_of_interest, **job_options):
        """
        Build a :class:`Dataset` in this cache. No I/O.

        ``job_options`` are passed to :class:`~landfire.job.Job` (``email``,
        ``output_projection``, ``resample_resolution``, ...).
        """
        job_options.setdefault("config", self.config)
        return Dataset(Job(products, area_of_interest, **job_options), self.cache_dir)

    def for_job(self, job):
        return Dataset(job, self.cache_dir)

    def is_warm(self, dataset):
        return os.path.isdir(dataset.dir)

    def primary_raster(self, dataset):
        """
        Return the single ``*<output_extension>`` file under the dataset directory.

        :raises AmbiguousOutput: if there is not exactly one such file
        """
        matches = sorted(
            str(p) for p in Path(dataset.dir).rglob(f"*{self.output_extension}") if p.is_file()
        )
        if len(matches) != 1:
            raise AmbiguousOutput(dataset.dir, matches, self.output_extension)
        return matches[0]

    @contextlib.contextmanager
    def _tagged(self, dataset):
        try:
            yield
        except LandfireError as e:
            if e.job_hash is None:
                e.job_hash = dataset.job.hexdigest
            raise

    def _extract(self, dataset):
        staging = dataset.dir + ".partial"
        if os.path.isdir(staging):
            logger.debug(f"Removing stale staging directory {staging}")
            shutil.rmtree(staging)
        try:
            self.extractor.extract(dataset.file, staging)
            try:
                os.replace(staging, dataset.dir)
            except OSError as e:
                raise ExtractionFailed(dataset.file, f"could not move {staging} to {dataset.dir}: {e}") from e
        finally:
            if os.path.isdir(staging):
                shutil.rmtree(staging, ignore_errors=True)
        return dataset.dir

    def retrieve(self, dataset, poll_interval=None, timeout=None):
        """
        Make a dataset available locally and return its primary raster.

        Warm datasets are served from disk. Cold datasets are submitted,
        awaited, downloaded to ``dataset.file`` and extracted to
        ``dataset.dir``; if any step fails the directory is left absent, so
        calling again is safe.

        Parameters
        ----------
        dataset : Dataset
            Dataset to retrieve.
        poll_interval, timeout : float, optional
            Passed to :meth:`JobClient.await_completion`.

        Returns
        -------
        str
            Path of the primary raster.

        Raises
        ------
        LandfireError
            Any failure of the underlying steps, with ``job_hash`` set.
        """
        with self._tagged(dataset):
            if self.is_warm(dataset):
                logger.info(f"Using cached directory {dataset.dir}")
            else:
                job_id = self.client.submit(dataset.job)
                url = self.client.await_completion(job_id, poll_interval, timeout)
                self.client.fetch_artifact(url, dataset.file)
                self._extract(dataset)
            return self.primary_raster(dataset)

    async def retrieve_async(self, dataset, poll_interval=None, timeout=None):
        """
        Coroutine version of :meth:`retrieve`.

        Blocking steps run in worker threads and the poll loop uses
        :meth:`JobClient.await_completion_async`.
        """
        with self._tagged(dataset):
            if self.is_warm(dataset):
                logger.info(f"Using cached directory {dataset.dir}")
            else:
                job_id = await asyncio.to_thread(self.client.submit, dataset.job)
                url = await self.client.await_completion_async(job_id, poll_interval, timeout)
                await asyncio.to_thread(self.client.fetch_artifact, url, dataset.file)
                await asyncio.to_thread(self._extract, dataset)
            return self.primary_raster(dataset)
