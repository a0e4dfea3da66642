"""SearchJob class representing a Splunk search job."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional

import pandas as pd

if TYPE_CHECKING:
    from splunkjobs.client import SplunkClient
    from splunkjobs.models import JobEntry, JobStatusDocument, SearchResult
    from splunkjobs.stream import ResultStream

# Seconds between job status polls
STATUS_POLL_INTERVAL = 3.0


class DispatchState(str, Enum):
    """
    Lifecycle stages Splunk reports in a job's dispatchState.

    Attributes:
        QUEUED: Job accepted, waiting for a search slot
        PARSING: Search string is being parsed
        RUNNING: Search in progress
        PAUSED: Paused by a control command
        FINALIZING: Stopping early, keeping results found so far
        FAILED: Search encountered an error
        DONE: Results are complete
    """
    QUEUED = "QUEUED"
    PARSING = "PARSING"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FINALIZING = "FINALIZING"
    FAILED = "FAILED"
    DONE = "DONE"


class ControlCommand(str, Enum):
    """Actions accepted by POST /services/search/jobs/{id}/control."""
    PAUSE = "pause"
    UNPAUSE = "unpause"
    FINALIZE = "finalize"
    CANCEL = "cancel"
    TOUCH = "touch"
    SET_TTL = "setttl"
    SET_PRIORITY = "setpriority"
    ENABLE_PREVIEW = "enablepreview"
    DISABLE_PREVIEW = "disablepreview"
    SET_WORKLOAD_POOL = "setworkloadpool"


@dataclass(frozen=True)
class SearchJob:
    """
    Handle to a search job running on Splunk.

    The handle only carries the search id; Splunk owns the job's state, so
    every status call goes back to the server. Dropping the handle does not
    touch the remote job. Use delete() or cancel() for that.

    Attributes:
        id: Search id (sid) assigned by Splunk

    Example:
        job = client.submit("index=_internal | head 1000")
        job.wait()
        df = job.to_dataframe()
        job.save("results.parquet")
        job.delete()
    """

    id: str
    _client: "SplunkClient" = field(repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def status(self) -> "JobStatusDocument":
        """Fetch the job's current metadata."""
        return self._client.get_job(self.id)

    async def status_async(self) -> "JobStatusDocument":
        """Async version of status()."""
        return await self._client.get_job_async(self.id)

    def wait(
        self,
        poll_interval: float = STATUS_POLL_INTERVAL,
        timeout: Optional[float] = None,
    ) -> Optional["JobEntry"]:
        """
        Block until the job's dispatch state is DONE.

        Args:
            poll_interval: Seconds between status checks (default: 3.0)
            timeout: Maximum seconds to wait (default: no limit)

        Returns:
            The final job entry, or None if the job no longer exists

        Raises:
            JobTimeoutError: If timeout is exceeded
            JobFailedError: If the job fails on the server
        """
        return self._client.wait(self.id, poll_interval, timeout)

    async def wait_async(
        self,
        poll_interval: float = STATUS_POLL_INTERVAL,
        timeout: Optional[float] = None,
    ) -> Optional["JobEntry"]:
        """
        Async version of wait().

        Cancelling the awaiting task stops the wait immediately. The remote
        job keeps running.
        """
        return await self._client.wait_async(self.id, poll_interval, timeout)

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def stream(self) -> "ResultStream":
        """
        Stream results one record at a time.

        Use this for very large result sets or for jobs that are still
        running. See SplunkClient.stream() for details.

        Example:
            async with job.stream() as results:
                async for record in results:
                    print(record["_raw"])
        """
        return self._client.stream(self.id)

    def results(self) -> list["SearchResult"]:
        """Retrieve all available results as a list."""
        return self._client.results(self.id)

    async def results_async(self) -> list["SearchResult"]:
        """Async version of results()."""
        return await self._client.results_async(self.id)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Retrieve all results as a pandas DataFrame.

        Handles pagination automatically for large result sets.

        Returns:
            DataFrame containing all search results
        """
        return self._client.to_dataframe(self.id)

    async def to_dataframe_async(self) -> pd.DataFrame:
        """Async version of to_dataframe()."""
        return await self._client.to_dataframe_async(self.id)

    def save(self, path: str | Path) -> Path:
        """
        Save results to a local file.

        File format is determined by extension:
        - .parquet: Apache Parquet (recommended for large datasets)
        - .csv: Comma-separated values

        Args:
            path: Destination file path

        Returns:
            Resolved Path to the saved file

        Raises:
            ValueError: If file extension is not .parquet or .csv
        """
        return self._client._run(self.save_async(path))

    async def save_async(self, path: str | Path) -> Path:
        """Async version of save()."""
        path = Path(path)
        if path.suffix not in (".parquet", ".csv"):
            raise ValueError(f"Unsupported file extension: {path.suffix}. Use .parquet or .csv")

        df = await self.to_dataframe_async()
        if path.suffix == ".parquet":
            df.to_parquet(path, index=False)
        else:
            df.to_csv(path, index=False)

        return path.resolve()

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    def control(
        self,
        command: ControlCommand | str,
        params: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Send a control command to the job.

        Args:
            command: One of ControlCommand (or its string value)
            params: Extra parameters, e.g. {"ttl": "600"} for SET_TTL
        """
        self._client.control(self.id, command, params)

    async def control_async(
        self,
        command: ControlCommand | str,
        params: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Async version of control()."""
        await self._client.control_async(self.id, command, params)

    def finalize(self) -> None:
        """Stop the job and keep the results found so far."""
        self.control(ControlCommand.FINALIZE)

    async def finalize_async(self) -> None:
        await self.control_async(ControlCommand.FINALIZE)

    def cancel(self) -> None:
        """Stop the job and discard its results."""
        self.control(ControlCommand.CANCEL)

    async def cancel_async(self) -> None:
        await self.control_async(ControlCommand.CANCEL)

    def delete(self) -> None:
        """Remove the job from Splunk. Deleting a stopped job is harmless."""
        self._client.delete(self.id)

    async def delete_async(self) -> None:
        await self._client.delete_async(self.id)

    def url(self, base_url: Optional[str] = None) -> str:
        """Link to the job in Splunk Web. See SplunkClient.job_url()."""
        return self._client.job_url(self.id, base_url)
