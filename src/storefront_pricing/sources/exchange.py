"""
Exchange rate quotes from the public dollar quote API.

Each quote series (``oficial``, ``blue``, ``bolsa``...) exposes a buy
(``compra``) and sell (``venta``) price; the store follows the sell price.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from storefront_pricing.shared.exceptions import ExchangeRateError
from storefront_pricing.shared.models import PricingSettings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dolarapi.com/v1/dolares"


class ExchangeQuote(BaseModel):
    """One quote series as returned by the API."""

    model_config = ConfigDict(extra="ignore")

    casa: str = ""
    nombre: str = ""
    compra: Decimal | None = None
    venta: Decimal | None = None
    fecha_actualizacion: str | None = Field(None, alias="fechaActualizacion")


class ExchangeSyncResult(BaseModel):
    """Outcome of one exchange rate sync attempt."""

    source: str
    previous_rate: Decimal
    rate: Decimal | None = None
    updated: bool = False
    skipped: bool = False


class SettingsStore(Protocol):
    async def get(self) -> PricingSettings: ...

    async def update(self, **changes) -> PricingSettings: ...


class ExchangeRateClient:
    """Client for the dollar quote API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def _get_json(self, url: str):
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise ExchangeRateError(
                "Exchange rate request failed",
                url=url,
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExchangeRateError(
                "Exchange rate API unreachable or returned invalid JSON",
                url=url,
                original_error=e,
            ) from e

    async def fetch_quote(self, source: str = "blue") -> ExchangeQuote:
        url = f"{self.base_url}/{source}"
        data = await self._get_json(url)
        try:
            return ExchangeQuote.model_validate(data)
        except ValidationError as e:
            raise ExchangeRateError(
                "Unexpected exchange rate payload", url=url, original_error=e
            ) from e

    async def fetch_rate(self, source: str = "blue") -> Decimal:
        """
        Return the sell price of ``source``.

        Raises:
            ExchangeRateError: On HTTP failure or when the quote has no positive sell price
        """
        quote = await self.fetch_quote(source)
        if quote.venta is None or quote.venta <= 0:
            raise ExchangeRateError(
                f"Quote '{source}' has no sell price", url=f"{self.base_url}/{source}"
            )
        return quote.venta

    async def fetch_quotes(self) -> list[ExchangeQuote]:
        """List every quote series, for choosing a source."""
        data = await self._get_json(self.base_url)
        if not isinstance(data, list):
            raise ExchangeRateError("Expected a list of quotes", url=self.base_url)
        try:
            return [ExchangeQuote.model_validate(item) for item in data]
        except ValidationError as e:
            raise ExchangeRateError(
                "Unexpected exchange rate payload", url=self.base_url, original_error=e
            ) from e


async def sync_exchange_rate(
    settings_repo: SettingsStore,
    client: ExchangeRateClient,
    force: bool = False,
) -> ExchangeSyncResult:
    """
    Refresh the stored exchange rate from the followed quote series.

    Does nothing unless automatic sync is enabled or ``force`` is set. The
    settings are only written when the quoted rate differs from the stored one.
    Item prices are not recomputed here; run a recalculation afterwards.
    """
    settings = await settings_repo.get()
    source = settings.auto_exchange_source or "blue"

    if not settings.auto_exchange_rate and not force:
        return ExchangeSyncResult(
            source=source, previous_rate=settings.exchange_rate, skipped=True
        )

    rate = await client.fetch_rate(source)
    result = ExchangeSyncResult(
        source=source, previous_rate=settings.exchange_rate, rate=rate
    )

    if rate != settings.exchange_rate:
        await settings_repo.update(
            exchange_rate=rate, last_exchange_update=datetime.now(UTC)
        )
        result.updated = True
        logger.info(
            f"Exchange rate ({source}) updated: {settings.exchange_rate} -> {rate}"
        )
    else:
        logger.info(f"Exchange rate ({source}) unchanged: {rate}")

    return result
