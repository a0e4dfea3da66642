"""SplunkClient - main entry point for splunkjobs."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Coroutine, Mapping, Optional, TypeVar
from urllib.parse import urlsplit, urlunsplit

import httpx
import pandas as pd
from pydantic import ValidationError

from splunkjobs.auth import Credentials
from splunkjobs.config import SplunkSettings
from splunkjobs.exceptions import (
    DecodeError,
    JobFailedError,
    JobTimeoutError,
    QuerySyntaxError,
    TransportError,
    UnexpectedStatusError,
)
from splunkjobs.job import STATUS_POLL_INTERVAL, ControlCommand, DispatchState, SearchJob
from splunkjobs.models import (
    ConcurrencySettings,
    JobEntry,
    JobStatusDocument,
    SearchResult,
    SubmitResponse,
)
from splunkjobs.pagination import PAGE_SIZE, PREVIEW_POLL_INTERVAL, paginate_preview
from splunkjobs.stream import BUFFERED_PAGES, ResultStream
from splunkjobs._utils.dataframe import records_to_dataframe

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEARCH_JOBS_PATH = "/services/search/jobs"
SEARCH_JOB_PATH = "/services/search/jobs/{sid}"
SEARCH_JOB_CONTROL_PATH = "/services/search/jobs/{sid}/control"
SEARCH_JOB_RESULTS_PREVIEW_PATH = "/services/search/jobs/{sid}/results_preview"
CONCURRENCY_SETTINGS_PATH = "/services/search/concurrency-settings/scheduler"
JOB_WEB_PATH = "/en-US/app/search/search?sid={sid}"


class SplunkClient:
    """
    Client for running searches through the Splunk REST API.

    Reads configuration from environment variables (SPLUNK_*) automatically.
    Provides both sync and async interfaces.

    The credentials are checked with one round trip before the client is
    used: connect()/connect_async() return a verified client, and
    ``async with SplunkClient()`` verifies on entry.

    Example:
        client = SplunkClient.connect()
        df = client.query("index=_internal | head 1000")

    Async Example:
        async with SplunkClient() as client:
            job = await client.submit_async("index=_internal | stats count by sourcetype")
            await job.wait_async()
            async with job.stream() as results:
                async for record in results:
                    print(record)

    Attributes:
        settings: SplunkSettings instance with API configuration
    """

    def __init__(
        self,
        settings: Optional[SplunkSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client without contacting Splunk.

        Args:
            settings: Optional SplunkSettings instance. If not provided,
                     settings are loaded from environment variables.
            http_client: Optional httpx.AsyncClient to send requests with.
                     Its base_url must be unset or the management endpoint.
                     A client passed in here is never closed by SplunkClient.
        """
        self.settings = settings or SplunkSettings()
        self._credentials = Credentials(self.settings)
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    async def connect_async(
        cls,
        settings: Optional[SplunkSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SplunkClient":
        """
        Create a client and verify its credentials.

        Raises:
            AuthenticationError: If Splunk rejects the credentials
        """
        client = cls(settings, http_client)
        await client.verify_async()
        return client

    @classmethod
    def connect(
        cls,
        settings: Optional[SplunkSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SplunkClient":
        """Sync version of connect_async()."""
        client = cls(settings, http_client)
        client.verify()
        return client

    async def __aenter__(self) -> "SplunkClient":
        """Async context manager entry. Verifies the credentials."""
        await self.verify_async()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this object created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=self.settings.timeout,
                verify=self.settings.verify_ssl,
            )
        return self._client

    def _url(self, path: str) -> str:
        return f"{self.settings.api_base_url}{path}"

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        """
        Run a coroutine to completion for the sync API.

        Inside Jupyter this runs on the already-running loop (re-entrant
        thanks to nest_asyncio) and leaves the httpx client open, since
        streams on that loop may still be using it. Otherwise it runs on a
        private event loop and closes the client before that loop goes
        away, so no connection outlives its loop.
        """
        async def runner() -> T:
            try:
                return await coro
            finally:
                await self.aclose()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            return loop.run_until_complete(coro)

        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(runner())
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """
        Send one authenticated request.

        Parameters go in the query string for GET/DELETE and in a
        form-encoded body for POST. output_mode=json is always added.

        Raises:
            TransportError: If no response was received
        """
        payload = {**(params or {}), "output_mode": "json"}
        kwargs: dict[str, Any] = {"headers": self._credentials.headers}
        if method == "POST":
            kwargs["data"] = payload
        else:
            kwargs["params"] = payload

        logger.debug("%s %s", method, path)
        try:
            return await self._get_client().request(method, self._url(path), **kwargs)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _expect_status(response: httpx.Response, expected: int, action: str) -> None:
        if response.status_code != expected:
            raise UnexpectedStatusError(
                f"{action}: bad status code {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

    # -------------------------------------------------------------------------
    # Public API: Sync methods (convenience wrappers)
    # -------------------------------------------------------------------------

    def verify(self) -> None:
        """Sync version of verify_async()."""
        self._run(self.verify_async())

    def query(
        self,
        query: str,
        params: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = 300.0,
    ) -> pd.DataFrame:
        """
        Run a search and return its results as a DataFrame.

        This is the simplest way to get data out of Splunk.
        Handles job submission, polling, and result retrieval automatically.

        Args:
            query: SPL without the leading "search" command
            params: Extra job parameters, e.g. {"earliest_time": "-24h"}
            timeout: Maximum seconds to wait for completion (default: 300)

        Returns:
            pandas DataFrame with query results

        Raises:
            QuerySyntaxError: If Splunk rejects the query
            JobTimeoutError: If the job doesn't complete within timeout
            JobFailedError: If the job fails on the server

        Example:
            df = client.query("index=web status=500", {"earliest_time": "-1h"})
            print(df.head())
        """
        return self._run(self.query_async(query, params, timeout))

    def submit(
        self,
        query: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> SearchJob:
        """
        Submit a search and return a SearchJob for tracking.

        Use this when you want control over polling and result retrieval.

        Example:
            job = client.submit("index=web", {"earliest_time": "-7d"})
            job.wait()
            print(f"Found {len(job.results())} results")
        """
        return self._run(self.submit_async(query, params))

    def get_job(self, job_id: str) -> JobStatusDocument:
        """Sync version of get_job_async()."""
        return self._run(self.get_job_async(job_id))

    def wait(
        self,
        job_id: str,
        poll_interval: float = STATUS_POLL_INTERVAL,
        timeout: Optional[float] = None,
    ) -> Optional[JobEntry]:
        """Sync version of wait_async()."""
        return self._run(self.wait_async(job_id, poll_interval, timeout))

    def results(self, job_id: str) -> list[SearchResult]:
        """
        Retrieve all currently available results as a list.

        For the async streaming version, use stream().

        Args:
            job_id: Search id of the job

        Returns:
            List of SearchResult records
        """
        return self._run(self.results_async(job_id))

    def to_dataframe(self, job_id: str) -> pd.DataFrame:
        """Sync version of to_dataframe_async()."""
        return self._run(self.to_dataframe_async(job_id))

    def control(
        self,
        job_id: str,
        command: ControlCommand | str,
        params: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Sync version of control_async()."""
        self._run(self.control_async(job_id, command, params))

    def delete(self, job_id: str) -> None:
        """Sync version of delete_async()."""
        self._run(self.delete_async(job_id))

    def update_concurrency_settings(self, settings: ConcurrencySettings) -> None:
        """Sync version of update_concurrency_settings_async()."""
        self._run(self.update_concurrency_settings_async(settings))

    # -------------------------------------------------------------------------
    # Public API: Async methods
    # -------------------------------------------------------------------------

    async def verify_async(self) -> None:
        """
        Check the credentials with one round trip.

        Raises:
            AuthenticationError: If the check fails
        """
        await self._credentials.verify(self._get_client())

    async def query_async(
        self,
        query: str,
        params: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = 300.0,
    ) -> pd.DataFrame:
        """
        Async version of query().

        Returns:
            pandas DataFrame with query results
        """
        job = await self.submit_async(query, params)
        await self.wait_async(job.id, timeout=timeout)
        return await self.to_dataframe_async(job.id)

    async def submit_async(
        self,
        query: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> SearchJob:
        """
        Create a search job.

        The job's search string is "search " + query. Any other job
        parameter from the Splunk REST reference can be passed in params;
        a "search" key in params is replaced.

        Args:
            query: SPL without the leading "search" command
            params: Extra job parameters (not modified)

        Returns:
            SearchJob handle

        Raises:
            QuerySyntaxError: On HTTP 400
            UnexpectedStatusError: On any status other than 201
            DecodeError: If the response has no search id
        """
        payload = dict(params or {})
        payload["search"] = f"search {query}"

        response = await self._request("POST", SEARCH_JOBS_PATH, payload)

        if response.status_code == 400:
            raise QuerySyntaxError(
                f"Invalid query: {response.text}",
                status_code=400,
                body=response.text,
            )
        self._expect_status(response, 201, "Creating search job")

        try:
            created = SubmitResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(
                f"Failed to decode search job creation response: {e}",
                body=response.text,
            ) from e

        logger.info("Created search job %s", created.sid)
        return SearchJob(id=created.sid, _client=self)

    async def get_job_async(self, job_id: str) -> JobStatusDocument:
        """
        Fetch a job's current metadata once.

        Returns:
            JobStatusDocument; its entry list is empty if the job is gone

        Raises:
            UnexpectedStatusError: On any status other than 200
            DecodeError: If the body is not a job status document
        """
        response = await self._request("GET", SEARCH_JOB_PATH.format(sid=job_id))
        self._expect_status(response, 200, f"Fetching search job {job_id}")

        try:
            return JobStatusDocument.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(
                f"Failed to decode status of search job {job_id}: {e}",
                body=response.text,
            ) from e

    async def wait_async(
        self,
        job_id: str,
        poll_interval: float = STATUS_POLL_INTERVAL,
        timeout: Optional[float] = None,
    ) -> Optional[JobEntry]:
        """
        Poll job status until its dispatch state is DONE.

        A job that has disappeared (deleted or expired) ends the wait
        without an error. Cancelling the awaiting task interrupts the sleep
        between polls at once; the remote job keeps running.

        Args:
            job_id: Search id of the job to monitor
            poll_interval: Seconds between status checks (default: 3.0)
            timeout: Maximum seconds to wait (default: no limit)

        Returns:
            The final job entry, or None if the job was not found

        Raises:
            JobTimeoutError: If timeout exceeded
            JobFailedError: If the job's dispatch state is FAILED
            UnexpectedStatusError, DecodeError, TransportError: From the status fetch
        """
        start_time = time.monotonic()

        while True:
            status = await self.get_job_async(job_id)

            entry = status.job
            if entry is None:
                logger.warning("Search job %s not found, nothing to wait for", job_id)
                return None

            if entry.dispatch_state == DispatchState.DONE:
                logger.info("Search job %s is done", job_id)
                return entry

            if entry.dispatch_state == DispatchState.FAILED:
                raise JobFailedError(
                    f"Search job {job_id} failed: {entry.content.messages}",
                    job_id=job_id,
                )

            if timeout is not None and time.monotonic() - start_time > timeout:
                raise JobTimeoutError(
                    f"Job {job_id} did not complete within {timeout} seconds"
                )

            logger.debug("Search job %s is %s", job_id, entry.dispatch_state)
            await asyncio.sleep(poll_interval)

    def stream(
        self,
        job_id: str,
        page_size: int = PAGE_SIZE,
        preview_interval: float = PREVIEW_POLL_INTERVAL,
    ) -> ResultStream:
        """
        Stream a job's results while it runs or after it finishes.

        Pages come from results_preview, which returns what the job has so
        far. The stream ends once Splunk returns an empty, non-preview page.
        A bad status, transport error or undecodable page also ends the
        stream, without an exception.

        While the job is running, preview pages of a changing aggregation
        (stats, timechart, ...) can differ between requests. Wait for the
        job to finish first if you need stable results.

        Args:
            job_id: Search id of the job
            page_size: Records per request (default: 100)
            preview_interval: Pause after a preview page (default: 1.0)

        Returns:
            ResultStream; iterate it inside ``async with`` so the
            background task is released when you stop early
        """
        source = paginate_preview(
            self._get_client(),
            self._url(SEARCH_JOB_RESULTS_PREVIEW_PATH.format(sid=job_id)),
            self._credentials.headers,
            page_size=page_size,
            preview_interval=preview_interval,
        )
        return ResultStream(source, buffer_size=page_size * BUFFERED_PAGES)

    async def results_async(self, job_id: str) -> list[SearchResult]:
        """Async version of results()."""
        records = []
        async with self.stream(job_id) as results:
            async for record in results:
                records.append(record)
        return records

    async def to_dataframe_async(self, job_id: str) -> pd.DataFrame:
        """
        Retrieve all results and convert to DataFrame.

        Args:
            job_id: Search id of the job

        Returns:
            pandas DataFrame with all results
        """
        return records_to_dataframe(await self.results_async(job_id))

    async def control_async(
        self,
        job_id: str,
        command: ControlCommand | str,
        params: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Run a job control command.

        Args:
            job_id: Search id of the job
            command: ControlCommand or its string value, e.g. "cancel"
            params: Extra parameters the action needs, e.g. {"ttl": "600"}

        Raises:
            ValueError: If command is not a known control action
            UnexpectedStatusError: On any status other than 200
        """
        action = ControlCommand(command)
        payload = {**(params or {}), "action": action.value}

        response = await self._request(
            "POST", SEARCH_JOB_CONTROL_PATH.format(sid=job_id), payload
        )
        self._expect_status(response, 200, f"Running {action.value} on search job {job_id}")
        logger.info("Sent %s to search job %s", action.value, job_id)

    async def delete_async(self, job_id: str) -> None:
        """
        Delete a search job. Deleting an already stopped job does nothing.

        Raises:
            UnexpectedStatusError: On any status other than 200
        """
        response = await self._request("DELETE", SEARCH_JOB_PATH.format(sid=job_id))
        self._expect_status(response, 200, f"Deleting search job {job_id}")
        logger.info("Deleted search job %s", job_id)

    async def update_concurrency_settings_async(self, settings: ConcurrencySettings) -> None:
        """
        Change the scheduler's concurrent search limits.

        Only the fields set on settings are sent; None leaves the server's
        value untouched.

        Raises:
            UnexpectedStatusError: On any status other than 200
        """
        response = await self._request(
            "POST", CONCURRENCY_SETTINGS_PATH, settings.to_params()
        )
        self._expect_status(response, 200, "Updating scheduler concurrency settings")

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------

    def job_url(self, job_id: str, base_url: Optional[str] = None) -> str:
        """
        Link to a job's results in Splunk Web, for people rather than code.

        The base is base_url if given, else settings.web_url, else the
        management URL with its port dropped.

        Example:
            client.job_url("1700000000.42")
            # https://splunk.example.com/en-US/app/search/search?sid=1700000000.42
        """
        base = base_url or self.settings.web_url
        if base is None:
            parts = urlsplit(self.settings.api_base_url)
            base = urlunsplit((parts.scheme, parts.hostname or "", parts.path, "", ""))
        return f"{base.rstrip('/')}{JOB_WEB_PATH.format(sid=job_id)}"
