"""Pagination over a search job's results_preview endpoint."""

import asyncio
import logging
from typing import AsyncIterator

import httpx
from pydantic import ValidationError

from splunkjobs.models import ResultPage, SearchResult

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PREVIEW_POLL_INTERVAL = 1.0


async def paginate_preview(
    client: httpx.AsyncClient,
    url: str,
    headers: dict,
    page_size: int = PAGE_SIZE,
    preview_interval: float = PREVIEW_POLL_INTERVAL,
) -> AsyncIterator[SearchResult]:
    """
    Async generator that walks results_preview with count/offset paging.

    results_preview answers with whatever the job has produced so far, so
    this works on running jobs as well as finished ones. The generator
    keeps asking until Splunk returns an empty page that is not a preview,
    which means the result set is complete.

    Any problem ends the generator quietly instead of raising: a non-200
    status (nothing more to read), a transport error or a page that does
    not decode. Records already yielded stay valid.

    Args:
        client: httpx.AsyncClient for the Splunk management endpoint
        url: results_preview URL (without query params)
        headers: Request headers including Authorization
        page_size: Records per request (default: 100)
        preview_interval: Seconds to pause after a preview page (default: 1.0)

    Yields:
        SearchResult records, in page order and server order within a page

    Example:
        async for record in paginate_preview(client, url, headers):
            print(record["_raw"])
    """
    offset = 0

    while True:
        params = {"count": page_size, "offset": offset, "output_mode": "json"}
        try:
            response = await client.get(url, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.warning("Stopping result stream at offset %d: %s", offset, e)
            return

        if response.status_code != 200:
            # No more content
            logger.debug(
                "Result stream ended at offset %d with status %d",
                offset,
                response.status_code,
            )
            return

        try:
            page = ResultPage.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning("Stopping result stream at offset %d: bad page: %s", offset, e)
            return

        if not page.results and not page.preview:
            logger.debug("Result stream complete after %d records", offset)
            return

        for fields in page.results:
            yield SearchResult(fields)

        if page.preview:
            # Job still running; don't hammer it while nothing new is there
            await asyncio.sleep(preview_interval)

        offset += len(page.results)
