"""
LFPS Job Client
===============

This module provides :class:`JobClient`, which owns every network call made
against the LFPS job endpoints: submitting a job, reading its status, waiting
for it to finish, cancelling it and downloading the finished archive.

Example
-------
::

    from landfire.client import JobClient

    client = JobClient()
    job_id = client.submit(job)
    url = client.await_completion(job_id, poll_interval=5, timeout=1800)
    client.fetch_artifact(url, "/tmp/landfire.zip")

Notes
-----
The client performs no automatic retry: transport failures surface
immediately as :class:`~landfire.errors.TransportError`. The only loop is
:meth:`JobClient.await_completion`, which polls at a fixed interval until the
job reaches a terminal state or the timeout elapses.
"""

import asyncio
import json
import logging
import os
import shutil
import time
from collections import namedtuple

import backoff
import requests

from landfire.config_reader import LandfireConfig
from landfire.errors import DownloadFailed, JobFailed, JobTimedOut, SubmissionRejected, TransportError
from landfire.products import parse_products
from landfire.utils import endpoints
from landfire.utils import requests_utils
from landfire.utils.job_utils import JobState, parse_job_status

logger = logging.getLogger(__name__)

CancelAck = namedtuple('CancelAck', ['job_id', 'accepted', 'detail'])


class JobClient:
    """
    Client for the LFPS job endpoints.

    Parameters
    ----------
    config : LandfireConfig, optional
        Client configuration. Read from the environment when omitted.
    session : requests.Session, optional
        Session used for all requests. Module-level ``requests`` functions
        are used when omitted.

    See Also
    --------
    :class:`~landfire.dataset.DatasetCache` : Drives this client to fill the local cache
    """

    def __init__(self, config: LandfireConfig = None, session=None):
        self.config = config if config is not None else LandfireConfig()
        self._session = session

    def _request(self, path, request_type=requests_utils.GET, **kwargs):
        return requests_utils.make_request(
            self.config.endpoint(path), self.config, request_type=request_type, session=self._session, **kwargs
        )

    def healthcheck(self):
        """
        Query the LFPS health endpoint.

        Returns
        -------
        dict
            Decoded health report, e.g. ``{'success': True, ...}``.

        Raises
        ------
        TransportError
            If the service is unreachable or answers with an error.
        """
        response = requests_utils.check_response(self._request(endpoints.HEALTHCHECK))
        body = requests_utils.read_json(response)
        if not isinstance(body, dict):
            raise TransportError(f"Unexpected healthcheck response: {response.text[:200]!r}")
        return body

    def fetch_products(self):
        """
        Download the product catalog.

        Returns
        -------
        list of Product
            Every product the service offers, sorted by name.
        """
        response = requests_utils.check_response(self._request(endpoints.PRODUCTS))
        try:
            return parse_products(requests_utils.read_json(response))
        except (KeyError, ValueError) as e:
            raise TransportError(f"Unexpected products response: {e}", e) from e

    def submit(self, job):
        """
        Submit a job.

        Parameters
        ----------
        job : Job
            The job to run.

        Returns
        -------
        str
            The job id assigned by the service.

        Raises
        ------
        SubmissionRejected
            If the service refuses the job or answers without a job id.
        TransportError
            If the request could not be sent.
        """
        payload = job.to_payload()
        response = self._request(
            endpoints.JOB_SUBMIT,
            requests_utils.POST,
            content_type=requests_utils.JSON_CONTENT_TYPE,
            data=json.dumps(payload),
        )
        if not response.ok:
            raise SubmissionRejected(f"{response.status_code}: {response.text[:500]}")
        body = requests_utils.read_json(response)
        job_id = body.get('jobId') if isinstance(body, dict) else None
        if job_id is None or not str(job_id).strip():
            raise SubmissionRejected(f"no jobId in response: {response.text[:500]!r}")
        job_id = str(job_id).strip()
        logger.info(f"Job submitted.  View job messages at: {endpoints.JOB_MESSAGES_PAGE.format(job_id=job_id)}")
        return job_id

    def poll_status(self, job_id):
        """
        Read the current status of a job. Issues exactly one request.

        Returns
        -------
        JobStatusSnapshot

        Raises
        ------
        TransportError
            On network failure or an HTTP error status.
        MalformedStatusResponse
            If the response cannot be read as a job status.
        """
        response = requests_utils.check_response(self._request(endpoints.JOB_STATUS, params={'JobId': job_id}))
        snapshot = parse_job_status(job_id, requests_utils.read_json(response))
        logger.debug(f"Job {job_id} status: {snapshot.raw_status}")
        return snapshot

    def _poll_settings(self, poll_interval, timeout):
        poll_interval = self.config.poll_interval if poll_interval is None else poll_interval
        timeout = self.config.timeout if timeout is None else timeout
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval!r}")
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must not be negative, got {timeout!r}")
        return poll_interval, timeout

    def _poller(self, job_id, poll_interval, timeout):
        def log_poll(details):
            logger.info(
                f"Job {job_id} status: {details['value'].raw_status}. "
                f"Checking again in {details['wait']:.1f} seconds."
            )

        return backoff.on_predicate(
            backoff.constant,
            predicate=lambda snapshot: not snapshot.is_terminal,
            interval=poll_interval,
            jitter=None,
            max_time=timeout,
            on_backoff=log_poll,
            logger=None,
        )

    @staticmethod
    def _completion_result(job_id, snapshot, elapsed):
        if snapshot.state is JobState.SUCCEEDED:
            logger.info(f"Job {job_id} succeeded after {elapsed:.1f} seconds.")
            return snapshot.output_file
        if snapshot.state is JobState.FAILED:
            raise JobFailed(job_id, snapshot.detail)
        raise JobTimedOut(job_id, elapsed)

    def await_completion(self, job_id, poll_interval=None, timeout=None):
        """
        Block until a job finishes.

        The first status request is sent immediately, then :meth:`poll_status`
        is called every ``poll_interval`` seconds until the job finishes. The
        timeout is checked once per poll, so the call may overrun ``timeout``
        by up to one poll interval.

        Parameters
        ----------
        job_id : str
            Handle returned by :meth:`submit`.
        poll_interval : float, optional
            Seconds between polls. Defaults to ``config.poll_interval``.
        timeout : float, optional
            Seconds to wait before giving up. Defaults to ``config.timeout``;
            ``None`` there means wait forever.

        Returns
        -------
        str
            URL of the output archive.

        Raises
        ------
        JobFailed
            As soon as the service reports the job failed.
        JobTimedOut
            If the job is still not finished after ``timeout`` seconds.
        TransportError, MalformedStatusResponse
            Propagated from :meth:`poll_status`.
        """
        poll_interval, timeout = self._poll_settings(poll_interval, timeout)
        logger.info(f"Checking job {job_id} every {poll_interval} seconds.")
        start = time.monotonic()
        snapshot = self._poller(job_id, poll_interval, timeout)(self.poll_status)(job_id)
        return self._completion_result(job_id, snapshot, time.monotonic() - start)

    async def await_completion_async(self, job_id, poll_interval=None, timeout=None):
        """
        Coroutine version of :meth:`await_completion`.

        Each poll runs in a worker thread and the wait between polls is an
        ``asyncio.sleep``, so many jobs can be awaited on one event loop and
        cancelling the task stops the wait immediately.
        """
        poll_interval, timeout = self._poll_settings(poll_interval, timeout)
        logger.info(f"Checking job {job_id} every {poll_interval} seconds.")

        async def poll(handle):
            return await asyncio.to_thread(self.poll_status, handle)

        start = time.monotonic()
        snapshot = await self._poller(job_id, poll_interval, timeout)(poll)(job_id)
        return self._completion_result(job_id, snapshot, time.monotonic() - start)

    def cancel(self, job_id):
        """
        Ask the service to cancel a job. Best effort.

        Returns
        -------
        CancelAck
            ``accepted`` is ``False`` when the service refused the request;
            ``detail`` holds the decoded response body or text.

        Raises
        ------
        TransportError
            Only if the request itself could not be sent.
        """
        response = self._request(endpoints.JOB_CANCEL, params={'JobId': job_id})
        body = requests_utils.read_json(response)
        if not response.ok:
            logger.warning(f"Cancellation of job {job_id} was rejected ({response.status_code}): {response.text[:200]}")
            return CancelAck(job_id, False, body if body is not None else response.text)
        logger.info(f"Cancellation requested for job {job_id}.")
        return CancelAck(job_id, True, body)

    def fetch_artifact(self, url, destination):
        """
        Download a job's output archive.

        The archive is streamed to ``<destination>.part`` and moved into
        place once complete; an existing file at ``destination`` is replaced.

        Parameters
        ----------
        url : str
            Absolute URL reported by the job status.
        destination : str or os.PathLike
            Local file path to write.

        Returns
        -------
        str
            ``destination``.

        Raises
        ------
        DownloadFailed
            On any transport, HTTP or filesystem error. No partial file is
            left behind.
        """
        destination = os.fspath(destination)
        partial = destination + '.part'
        sender = self._session if self._session is not None else requests
        logger.debug(f"GET request sent to {url}")
        try:
            os.makedirs(os.path.dirname(os.path.abspath(destination)), exist_ok=True)
            with sender.get(url, stream=True, timeout=self.config.request_timeout) as r:
                r.raise_for_status()
                r.raw.decode_content = True
                with open(partial, 'wb') as f:
                    shutil.copyfileobj(r.raw, f)
            os.replace(partial, destination)
        except (requests.RequestException, OSError) as e:
            if os.path.exists(partial):
                os.remove(partial)
            raise DownloadFailed(url, e) from e
        logger.info(f"Downloaded {url} to {destination}")
        return destination
