import asyncio
import json
import os
import pathlib
import time

import pytest
import responses
from responses import matchers

from landfire.client import JobClient
from landfire.errors import (
    DownloadFailed,
    JobFailed,
    JobTimedOut,
    MalformedStatusResponse,
    SubmissionRejected,
    TransportError,
)
from landfire.job import Job
from landfire.utils.job_utils import JobState, parse_job_status

from conftest import API_ROOT, EMAIL

OUTPUT_URL = "https://lfps.test/output/j-1.zip"


class ScriptedClient(JobClient):
    """JobClient whose status reads come from a list of status bodies."""

    def __init__(self, config, bodies):
        super().__init__(config)
        self.bodies = list(bodies)
        self.polls = 0

    def poll_status(self, job_id):
        body = self.bodies[min(self.polls, len(self.bodies) - 1)]
        self.polls += 1
        return parse_job_status(job_id, body)


@pytest.fixture
def job(fbfm13):
    return Job([fbfm13], "-120.0 35.0 -110.0 40.0", email=EMAIL)


@responses.activate
def test_submit_returns_job_id(config, job):
    responses.post(f"{API_ROOT}job/submit", json={"jobId": "j-1"})

    assert JobClient(config).submit(job) == "j-1"

    request = responses.calls[0].request
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.body) == {
        "Email": EMAIL,
        "Layer_List": "240FBFM13",
        "Area_of_Interest": "-120.0 35.0 -110.0 40.0",
    }


@responses.activate
def test_submit_rejected(config, job):
    responses.post(f"{API_ROOT}job/submit", status=400, body="Invalid Layer_List")

    with pytest.raises(SubmissionRejected, match="Invalid Layer_List"):
        JobClient(config).submit(job)


@responses.activate
def test_submit_without_job_id_is_rejected(config, job):
    responses.post(f"{API_ROOT}job/submit", json={"message": "ok"})

    with pytest.raises(SubmissionRejected, match="no jobId"):
        JobClient(config).submit(job)


@responses.activate
def test_unreachable_service_is_transport_error(config, job):
    # nothing registered: responses raises ConnectionError
    with pytest.raises(TransportError):
        JobClient(config).submit(job)


@responses.activate
def test_poll_status_running(config):
    responses.get(
        f"{API_ROOT}job/status",
        json={"jobId": "j-1", "status": "Executing", "messages": ["Job is executing"]},
        match=[matchers.query_param_matcher({"JobId": "j-1"})],
    )

    snapshot = JobClient(config).poll_status("j-1")

    assert snapshot.state is JobState.RUNNING
    assert not snapshot.is_terminal
    assert snapshot.output_file is None
    assert snapshot.messages == ("Job is executing",)


@responses.activate
def test_poll_status_succeeded(config):
    responses.get(f"{API_ROOT}job/status", json={"status": "Succeeded", "outputFile": OUTPUT_URL})

    snapshot = JobClient(config).poll_status("j-1")

    assert snapshot.state is JobState.SUCCEEDED
    assert snapshot.output_file == OUTPUT_URL


@responses.activate
def test_poll_status_failed_detail(config):
    responses.get(f"{API_ROOT}job/status", json={"status": "Failed", "messages": ["started", "disk full"]})

    snapshot = JobClient(config).poll_status("j-1")

    assert snapshot.state is JobState.FAILED
    assert snapshot.detail == "disk full"


@pytest.mark.parametrize("body", [
    {"json": {"jobId": "j-1"}},
    {"json": {"status": "Succeeded"}},
    {"json": ["Succeeded"]},
    {"body": "<html>maintenance</html>"},
])
@responses.activate
def test_poll_status_malformed(config, body):
    responses.get(f"{API_ROOT}job/status", **body)

    with pytest.raises(MalformedStatusResponse):
        JobClient(config).poll_status("j-1")


@responses.activate
def test_poll_status_http_error_is_transport_error(config):
    responses.get(f"{API_ROOT}job/status", status=503, body="unavailable")

    with pytest.raises(TransportError, match="503"):
        JobClient(config).poll_status("j-1")


def test_await_completion_polls_until_success(config):
    running = {"status": "Executing"}
    client = ScriptedClient(config, [running, running, {"status": "Succeeded", "outputFile": OUTPUT_URL}])

    assert client.await_completion("j-1", poll_interval=0.01) == OUTPUT_URL
    assert client.polls == 3


def test_await_completion_failure_is_not_retried(config):
    client = ScriptedClient(config, [{"status": "Executing"}, {"status": "Failed", "messages": ["disk full"]}])

    with pytest.raises(JobFailed, match="disk full") as excinfo:
        client.await_completion("j-1", poll_interval=0.01)
    assert excinfo.value.handle == "j-1"
    assert client.polls == 2


def test_await_completion_times_out(config):
    client = ScriptedClient(config, [{"status": "Executing"}])

    start = time.monotonic()
    with pytest.raises(JobTimedOut) as excinfo:
        client.await_completion("j-1", poll_interval=1, timeout=2)
    elapsed = time.monotonic() - start

    assert 2.0 <= elapsed < 3.0
    assert excinfo.value.handle == "j-1"
    assert client.polls >= 3


def test_await_completion_zero_timeout_polls_once(config):
    client = ScriptedClient(config, [{"status": "Executing"}])

    with pytest.raises(JobTimedOut):
        client.await_completion("j-1", poll_interval=1, timeout=0)
    assert client.polls == 1


def test_await_completion_rejects_bad_interval(config):
    with pytest.raises(ValueError):
        ScriptedClient(config, [{"status": "Executing"}]).await_completion("j-1", poll_interval=0)


def test_await_completion_async(config):
    client = ScriptedClient(config, [{"status": "Queued"}, {"status": "Succeeded", "outputFile": OUTPUT_URL}])

    assert asyncio.run(client.await_completion_async("j-1", poll_interval=0.01)) == OUTPUT_URL
    assert client.polls == 2


def test_await_completion_async_can_be_cancelled(config):
    client = ScriptedClient(config, [{"status": "Executing"}])

    async def run():
        task = asyncio.create_task(client.await_completion_async("j-1", poll_interval=60))
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    start = time.monotonic()
    asyncio.run(run())
    assert time.monotonic() - start < 5
    assert client.polls == 1


@responses.activate
def test_cancel_accepted(config):
    responses.get(
        f"{API_ROOT}job/cancel",
        json={"status": "Canceled"},
        match=[matchers.query_param_matcher({"JobId": "j-1"})],
    )

    ack = JobClient(config).cancel("j-1")

    assert ack.accepted
    assert ack.job_id == "j-1"
    assert ack.detail == {"status": "Canceled"}


@responses.activate
def test_cancel_rejected(config):
    responses.get(f"{API_ROOT}job/cancel", status=409, body="Job already finished")

    ack = JobClient(config).cancel("j-1")

    assert not ack.accepted
    assert ack.detail == "Job already finished"


@responses.activate
def test_fetch_artifact(config, tmp_path: pathlib.Path):
    responses.get(OUTPUT_URL, body=b"PK\x03\x04archive")
    destination = tmp_path / "nested" / "job.zip"

    result = JobClient(config).fetch_artifact(OUTPUT_URL, destination)

    assert result == str(destination)
    assert destination.read_bytes() == b"PK\x03\x04archive"
    assert not os.path.exists(f"{destination}.part")


@responses.activate
def test_fetch_artifact_overwrites(config, tmp_path: pathlib.Path):
    destination = tmp_path / "job.zip"
    destination.write_bytes(b"stale")
    responses.get(OUTPUT_URL, body=b"fresh")

    JobClient(config).fetch_artifact(OUTPUT_URL, destination)

    assert destination.read_bytes() == b"fresh"


@responses.activate
def test_fetch_artifact_404(config, tmp_path: pathlib.Path):
    responses.get(OUTPUT_URL, status=404, body="Not Found")
    destination = tmp_path / "job.zip"

    with pytest.raises(DownloadFailed, match="404") as excinfo:
        JobClient(config).fetch_artifact(OUTPUT_URL, destination)

    assert excinfo.value.url == OUTPUT_URL
    assert not destination.exists()
    assert not os.path.exists(f"{destination}.part")


@responses.activate
def test_healthcheck(config):
    responses.get(f"{API_ROOT}healthCheck", json={"success": True, "message": "Healthy"})

    assert JobClient(config).healthcheck() == {"success": True, "message": "Healthy"}


@responses.activate
def test_healthcheck_error(config):
    responses.get(f"{API_ROOT}healthCheck", status=500, body="down")

    with pytest.raises(TransportError):
        JobClient(config).healthcheck()


@responses.activate
def test_fetch_products(config):
    responses.get(f"{API_ROOT}products", json={"products": [
        {"productName": "Existing Vegetation Type", "theme": "Vegetation", "layerName": "240EVT",
         "version": "2.4.0", "conus": True, "ak": False, "hi": True, "geoAreas": "CONUS, HI"},
        {"productName": "13 Anderson Fire Behavior Fuel Models", "theme": "Fuel", "layerName": "240FBFM13",
         "version": "2.4.0", "conus": True, "ak": True, "hi": True, "geoAreas": "CONUS, AK, HI"},
    ]})

    products = JobClient(config).fetch_products()

    assert [p.layer for p in products] == ["240FBFM13", "240EVT"]


@responses.activate
def test_fetch_products_malformed(config):
    responses.get(f"{API_ROOT}products", json={"items": []})

    with pytest.raises(TransportError):
        JobClient(config).fetch_products()
