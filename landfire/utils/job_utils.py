from collections import namedtuple
from enum import Enum

from landfire.errors import MalformedStatusResponse


class JobState(Enum):
    QUEUED = 'Queued'
    RUNNING = 'Running'
    SUCCEEDED = 'Succeeded'
    FAILED = 'Failed'
    UNKNOWN = 'Unknown'


# Service status strings, compared case-insensitively
JOB_STATUSES = {
    'pending': JobState.QUEUED,
    'queued': JobState.QUEUED,
    'submitted': JobState.QUEUED,
    'accepted': JobState.QUEUED,
    'executing': JobState.RUNNING,
    'running': JobState.RUNNING,
    'succeeded': JobState.SUCCEEDED,
    'failed': JobState.FAILED,
    'canceled': JobState.FAILED,
    'cancelled': JobState.FAILED,
    'timed out': JobState.FAILED,
    'timedout': JobState.FAILED,
}

TERMINAL_STATES = frozenset({JobState.SUCCEEDED, JobState.FAILED})


class JobStatusSnapshot(namedtuple(
        'JobStatusSnapshot', ['job_id', 'state', 'output_file', 'detail', 'raw_status', 'messages'])):
    """
    Point-in-time read of a remote job.

    ``output_file`` is only set when the job succeeded, ``detail`` only when
    it failed.
    """
    __slots__ = ()

    @property
    def is_terminal(self):
        return self.state in TERMINAL_STATES


def job_state(status):
    '''
    Maps a service status string to a JobState

    Args:
        status (str): Status as reported by LFPS, e.g. 'Executing' or 'Succeeded'.

    Returns:
        JobState: The matching state, or JobState.UNKNOWN for unrecognized strings.
    '''
    return JOB_STATUSES.get(status.strip().lower(), JobState.UNKNOWN)


def _failure_detail(body, status, messages):
    for key in ('error', 'errorMessage', 'message'):
        if body.get(key):
            return str(body[key])
    if messages:
        return str(messages[-1])
    return f"service reported status '{status}'"


def parse_job_status(job_id, body):
    '''
    Builds a JobStatusSnapshot from a decoded job/status response

    Args:
        job_id (str): Handle the status was requested for.
        body: Decoded JSON body of the response (None when the body was not JSON).

    Returns:
        JobStatusSnapshot: The parsed snapshot.

    Raises:
        MalformedStatusResponse: If the body has no usable status, or reports success without an output file.
    '''
    if not isinstance(body, dict):
        raise MalformedStatusResponse(f"expected a JSON object for job {job_id}, got {body!r}")
    status = body.get('status')
    if not isinstance(status, str) or not status.strip():
        raise MalformedStatusResponse(f"no status field for job {job_id}: {body!r}")

    messages = body.get('messages') or []
    if not isinstance(messages, list):
        messages = [messages]
    state = job_state(status)

    output_file = None
    detail = None
    if state is JobState.SUCCEEDED:
        output_file = body.get('outputFile')
        if not isinstance(output_file, str) or not output_file:
            raise MalformedStatusResponse(f"job {job_id} succeeded without an outputFile: {body!r}")
    elif state is JobState.FAILED:
        detail = _failure_detail(body, status, messages)

    return JobStatusSnapshot(
        job_id=body.get('jobId') or job_id,
        state=state,
        output_file=output_file,
        detail=detail,
        raw_status=status,
        messages=tuple(messages),
    )
