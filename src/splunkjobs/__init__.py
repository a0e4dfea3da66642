"""
splunkjobs - Run Splunk searches as jobs and stream their results.

Quick Start
-----------
    from splunkjobs import SplunkClient

    client = SplunkClient.connect()
    df = client.query("index=_internal | head 1000", {"earliest_time": "-24h"})

Configuration
-------------
Set these environment variables (or use a .env file):

    SPLUNK_BASE_URL      - Management endpoint, e.g. https://splunk:8089
    SPLUNK_USERNAME      - Splunk user (with SPLUNK_PASSWORD)
    SPLUNK_PASSWORD      - Splunk password
    SPLUNK_TOKEN         - Authentication token, instead of username/password

Job-Based Workflow
------------------
    job = client.submit("index=web status=500", {"earliest_time": "-7d"})
    job.wait()
    df = job.to_dataframe()
    job.save("results.parquet")
    job.delete()

Streaming
---------
    async with SplunkClient() as client:
        job = await client.submit_async("index=web")
        async with job.stream() as results:
            async for record in results:
                print(record.get_field_string("_raw"))

Exceptions
----------
    AuthenticationError    - Credentials rejected
    TransportError         - Network failure (never retried)
    UnexpectedStatusError  - Splunk answered with an unexpected status code
    QuerySyntaxError       - Splunk refused to create the job
    DecodeError            - Response did not have the expected shape
    JobTimeoutError        - Search didn't complete in time
    JobFailedError         - Server-side search failure
"""

__version__ = "0.1.0"

import logging

# Enable nested asyncio event loops (required for Jupyter notebooks)
import nest_asyncio
nest_asyncio.apply()

from splunkjobs.client import SplunkClient
from splunkjobs.config import SplunkSettings
from splunkjobs.job import ControlCommand, DispatchState, SearchJob
from splunkjobs.models import (
    ConcurrencySettings,
    JobContent,
    JobEntry,
    JobStatusDocument,
    ResultPage,
    SearchResult,
)
from splunkjobs.stream import ResultStream
from splunkjobs.exceptions import (
    SplunkJobsError,
    AuthenticationError,
    TransportError,
    UnexpectedStatusError,
    QuerySyntaxError,
    DecodeError,
    JobTimeoutError,
    JobFailedError,
)
from splunkjobs._utils.timefmt import format_time, parse_time

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "SplunkClient",
    "SplunkSettings",
    "SearchJob",
    "ControlCommand",
    "DispatchState",
    "ConcurrencySettings",
    "JobContent",
    "JobEntry",
    "JobStatusDocument",
    "ResultPage",
    "SearchResult",
    "ResultStream",
    "SplunkJobsError",
    "AuthenticationError",
    "TransportError",
    "UnexpectedStatusError",
    "QuerySyntaxError",
    "DecodeError",
    "JobTimeoutError",
    "JobFailedError",
    "format_time",
    "parse_time",
    "__version__",
]
