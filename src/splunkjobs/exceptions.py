"""Exception hierarchy for splunkjobs."""


class SplunkJobsError(Exception):
    """Base exception for all splunkjobs errors."""
    pass


class TransportError(SplunkJobsError):
    """
    The request never got a response.

    Raised for connection failures, timeouts and other network errors.
    Requests are never retried; the original httpx error is chained.
    """
    pass


class AuthenticationError(SplunkJobsError):
    """
    Splunk rejected the credentials.

    Common causes:
    - Wrong SPLUNK_USERNAME / SPLUNK_PASSWORD or an expired SPLUNK_TOKEN
    - SPLUNK_BASE_URL pointing at the web port instead of the management port
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UnexpectedStatusError(SplunkJobsError):
    """
    Splunk answered with a status code other than the expected one.

    The status_code and the raw response body are available on this
    exception for diagnostics.
    """

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class QuerySyntaxError(UnexpectedStatusError):
    """
    Splunk refused to create the search job (HTTP 400).

    Usually the SPL is malformed. Test the query in Splunk Web first.
    """
    pass


class DecodeError(SplunkJobsError):
    """A response body or result record did not match the expected shape."""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class JobTimeoutError(SplunkJobsError):
    """
    Search job did not complete within the timeout period.

    Consider:
    - Narrowing the time range (earliest_time/latest_time)
    - Finalizing the job to keep the results found so far
    - Increasing the timeout parameter
    """
    pass


class JobFailedError(SplunkJobsError):
    """
    Search job failed on the Splunk server.

    The job_id and the server's messages are available on this exception.
    """

    def __init__(self, message: str, job_id: str | None = None):
        super().__init__(message)
        self.job_id = job_id
