"""
Exceptions
==========

Every error raised by the client derives from :class:`LandfireError`, so
callers can catch the whole family at once or pick out a single failure mode.

Input errors (:class:`MissingRequesterIdentity`, :class:`EmptyLayerSet`,
:class:`InvalidAreaOfInterest`) are raised while building a job and are never
retried. Transport errors (:class:`TransportError`, :class:`DownloadFailed`)
surface immediately; the client performs no automatic retry. Remote decisions
(:class:`SubmissionRejected`, :class:`JobFailed`) and timing errors
(:class:`JobTimedOut`) are terminal for the call that raised them. Filesystem
errors (:class:`ExtractionFailed`, :class:`AmbiguousOutput`) carry the paths
needed to inspect the cache by hand.
"""


class LandfireError(Exception):
    """
    Base class for all client errors.

    Parameters
    ----------
    message : str
        Human-readable description.
    job_hash : str, optional
        Hex content hash of the job being processed, when known. Set by
        :meth:`~landfire.dataset.DatasetCache.retrieve` for failures raised
        during retrieval.
    """

    def __init__(self, message, job_hash=None):
        super().__init__(message)
        self.message = message
        self.job_hash = job_hash

    def __str__(self):
        if self.job_hash:
            return f"{self.message} (job {self.job_hash})"
        return self.message


class MissingRequesterIdentity(LandfireError):
    def __init__(self):
        super().__init__("No requester email given. Pass email=... or set the LANDFIRE_EMAIL environment variable.")


class EmptyLayerSet(LandfireError):
    def __init__(self):
        super().__init__("A job needs at least one product layer.")


class InvalidAreaOfInterest(LandfireError):
    def __init__(self, value, reason="cannot be reduced to a bounding box"):
        super().__init__(f"Invalid area of interest {value!r}: {reason}")
        self.value = value


class TransportError(LandfireError):
    """The request never produced a usable HTTP response."""

    def __init__(self, detail, cause=None):
        super().__init__(f"Transport error: {detail}")
        self.detail = detail
        self.cause = cause


class SubmissionRejected(LandfireError):
    def __init__(self, detail):
        super().__init__(f"Job submission rejected: {detail}")
        self.detail = detail


class MalformedStatusResponse(LandfireError):
    def __init__(self, detail):
        super().__init__(f"Malformed job status response: {detail}")
        self.detail = detail


class JobFailed(LandfireError):
    """The service reported the job as failed. Terminal; never retried."""

    def __init__(self, handle, detail):
        super().__init__(f"Job {handle} failed: {detail}")
        self.handle = handle
        self.detail = detail


class JobTimedOut(LandfireError):
    """
    The job did not finish within the allotted time.

    The remote job may still complete later; waiting again on the same
    handle, or retrieving the same dataset again, is a valid recovery.
    """

    def __init__(self, handle, elapsed):
        super().__init__(f"Job {handle} did not complete after {elapsed:.1f} seconds")
        self.handle = handle
        self.elapsed = elapsed


class DownloadFailed(LandfireError):
    def __init__(self, url, cause):
        super().__init__(f"Download of {url} failed: {cause}")
        self.url = url
        self.cause = cause


class ExtractionFailed(LandfireError):
    def __init__(self, archive_path, exit_detail):
        super().__init__(f"Extraction of {archive_path} failed: {exit_detail}")
        self.archive_path = archive_path
        self.exit_detail = exit_detail


class AmbiguousOutput(LandfireError):
    def __init__(self, directory, matches, extension=".tif"):
        super().__init__(
            f"Expected exactly one '*{extension}' file in {directory}, found {len(matches)}: {matches}"
        )
        self.directory = directory
        self.matches = matches
