"""
Supplier price feed download and parsing.

The feed is a published spreadsheet exported as CSV with no header row and
four positional columns: external id, name, category text, price text. Rows
may be ragged; extra cells are dropped and missing cells read as blank.
"""

import io
import logging

import httpx
import pandas as pd
from pydantic import BaseModel

from storefront_pricing.shared.exceptions import ConfigurationError, SourceFetchError
from storefront_pricing.shared.models import ReconciliationRow

logger = logging.getLogger(__name__)

FEED_COLUMNS = ["external_id", "raw_name", "raw_category_text", "raw_price_text"]


class FeedVerification(BaseModel):
    """Summary shown when checking that a feed URL is readable."""

    row_count: int
    first_row: ReconciliationRow | None = None
    last_row: ReconciliationRow | None = None


def parse_feed(text: str, delimiter: str = ",") -> list[ReconciliationRow]:
    """
    Parse CSV feed text into reconciliation rows.

    All cells are read as strings so leading zeros in barcodes survive.
    Blank lines are skipped; header rows are left for the reconciler to drop.

    Raises:
        SourceFetchError: If the text is not parseable as delimited data
    """
    if not text.strip():
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            names=FEED_COLUMNS,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=lambda fields: fields[: len(FEED_COLUMNS)],
        )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        raise SourceFetchError("Feed is not valid CSV", original_error=e) from e

    df = df.fillna("")
    return [ReconciliationRow(**record) for record in df.to_dict(orient="records")]


class SourceFeedClient:
    """
    Downloads and parses the supplier feed.

    Args:
        timeout_seconds: HTTP timeout per request
        delimiter: CSV field separator
        transport: Optional httpx transport (tests inject a MockTransport)
    """

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        delimiter: str = ",",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.delimiter = delimiter
        self.transport = transport

    async def fetch_text(self, url: str) -> str:
        if not url or not url.strip():
            raise ConfigurationError("No price feed URL configured", setting="sheetUrl")

        url = url.strip()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceFetchError(
                "Price feed request failed",
                url=url,
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise SourceFetchError(
                "Price feed unreachable", url=url, original_error=e
            ) from e

        return response.text

    async def fetch_rows(self, url: str) -> list[ReconciliationRow]:
        """
        Download the feed at ``url`` and return its rows.

        Raises:
            ConfigurationError: If ``url`` is empty (no request is made)
            SourceFetchError: On network failure, non-2xx status or unparseable body
        """
        text = await self.fetch_text(url)
        try:
            rows = parse_feed(text, self.delimiter)
        except SourceFetchError as e:
            raise SourceFetchError(
                "Price feed is not valid CSV", url=url.strip(), original_error=e.original_error
            ) from e

        logger.info(f"Fetched {len(rows)} rows from price feed")
        return rows

    async def verify(self, url: str) -> FeedVerification:
        """Fetch the feed and report its row count with first/last row previews."""
        rows = await self.fetch_rows(url)
        return FeedVerification(
            row_count=len(rows),
            first_row=rows[0] if rows else None,
            last_row=rows[-1] if rows else None,
        )
