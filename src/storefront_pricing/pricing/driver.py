"""
Batched bulk import and whole-catalog repricing.

The driver stages writes, then commits them to the catalog store in
fixed-size batches, strictly one after another. Batch N is durable before
batch N+1 starts; a failing batch stops the run and raises
``BatchCommitError`` while earlier batches stay committed. Every staged write
is computed from current state, so re-running after a failure is safe.

State Transitions:
    idle → staging → committing → done
    committing → failed (terminal for that run, no retry)

One driver instance runs one operation at a time; callers must not start a
second operation on the same catalog while one is in flight.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from ..shared.exceptions import BatchCommitError
from ..shared.models import (
    CatalogItem,
    Currency,
    ImportCandidate,
    ItemUpdate,
    PricingSettings,
    StagedWrite,
    WriteKind,
)
from ..shared.number_utils import ZERO
from .calculator import PricingCalculator, prices_differ
from .parsing import (
    FOREIGN_CURRENCY_THRESHOLD,
    detect_platform_from_sku,
    format_title,
    infer_currency,
    slugify,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 450

ProgressCallback = Callable[[int, int], None]


class CatalogStore(Protocol):
    """Storage surface the driver needs."""

    async def get_all(self) -> list[CatalogItem]: ...

    async def write_batch(self, writes: list[StagedWrite]) -> None: ...


class DriverState(str, Enum):
    """Lifecycle of one driver run."""

    IDLE = "idle"
    STAGING = "staging"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


def chunk(writes: list[StagedWrite], size: int) -> list[list[StagedWrite]]:
    """Split writes into consecutive batches of at most ``size``."""
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [writes[i : i + size] for i in range(0, len(writes), size)]


class BatchDriver:
    """
    Commits staged catalog writes in sequential, bounded batches.

    Attributes:
        store: Catalog store providing ``get_all`` and ``write_batch``
        batch_size: Maximum writes per storage transaction
        state: Current DriverState
        current_batch: Index of the batch being (or last) committed
        total_batches: Number of batches in the current run
        committed_items: Writes made durable in the current run
    """

    def __init__(
        self,
        store: CatalogStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_callback: ProgressCallback | None = None,
        currency_threshold: Decimal = FOREIGN_CURRENCY_THRESHOLD,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")

        self.store = store
        self.batch_size = batch_size
        self.progress_callback = progress_callback
        self.currency_threshold = currency_threshold

        self.state = DriverState.IDLE
        self.current_batch = 0
        self.total_batches = 0
        self.committed_items = 0

    def _transition(self, new_state: DriverState) -> None:
        logger.debug(f"Batch driver state transition: {self.state.value} → {new_state.value}")
        self.state = new_state

    def _start_run(self) -> None:
        self.current_batch = 0
        self.total_batches = 0
        self.committed_items = 0
        self._transition(DriverState.STAGING)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    async def bulk_import(
        self,
        candidates: Iterable[ImportCandidate | dict[str, Any]],
        settings: PricingSettings,
    ) -> int:
        """
        Create catalog items for every candidate.

        Each record gets a slug built from the candidate name, freshly computed
        prices, ``stock=True``, ``is_hidden=False`` and a creation timestamp.

        Args:
            candidates: Items carrying at least a name and a cost
            settings: Pricing settings snapshot

        Returns:
            Number of items created

        Raises:
            BatchCommitError: If a batch fails; earlier batches remain committed
        """
        self._start_run()
        calculator = PricingCalculator(settings)
        created_at = datetime.now(UTC)

        writes = [
            self.stage_creation(
                candidate
                if isinstance(candidate, ImportCandidate)
                else ImportCandidate.model_validate(candidate),
                calculator,
                created_at,
            )
            for candidate in candidates
        ]

        logger.info(f"Staged {len(writes)} catalog items for bulk import")
        return await self._commit(writes, operation="bulk_import")

    async def recalculate_all(self, settings: PricingSettings) -> int:
        """
        Reprice the whole catalog under ``settings``.

        Only items whose stored prices differ from the recomputed ones are
        written.

        Returns:
            Number of items updated

        Raises:
            StorageError: If the catalog cannot be read
            BatchCommitError: If a batch fails; earlier batches remain committed
        """
        self._start_run()
        try:
            items = await self.store.get_all()
        except Exception:
            self._transition(DriverState.FAILED)
            raise

        calculator = PricingCalculator(settings)
        writes: list[StagedWrite] = []
        for item in items:
            result = calculator.calculate_item(item)
            if prices_differ(item, result):
                writes.append(
                    StagedWrite(
                        kind=WriteKind.UPDATE,
                        key=item.id,
                        fields={
                            "price": result.final_price,
                            "base_price": result.base_price,
                        },
                    )
                )

        logger.info(
            f"Recalculation staged {len(writes)} of {len(items)} items with changed prices"
        )
        return await self._commit(writes, operation="recalculate_all")

    async def apply_updates(self, updates: Iterable[ItemUpdate]) -> int:
        """Commit item updates produced by reconciliation or bulk actions."""
        self._start_run()
        writes = [
            StagedWrite(kind=WriteKind.UPDATE, key=update.item_id, fields=update.fields)
            for update in updates
        ]
        return await self._commit(writes, operation="apply_updates")

    # ------------------------------------------------------------------
    # Staging and commit
    # ------------------------------------------------------------------

    def stage_creation(
        self,
        candidate: ImportCandidate,
        calculator: PricingCalculator,
        created_at: datetime,
    ) -> StagedWrite:
        """Build the creation record for one import candidate."""
        currency = candidate.currency
        if currency is None:
            currency = (
                infer_currency(candidate.cost, self.currency_threshold)
                if candidate.cost > ZERO
                else Currency.LOCAL
            )

        result = calculator.calculate(
            candidate.cost,
            currency,
            candidate.custom_margin,
            candidate.discount_percentage,
            candidate.manual_price,
        )

        fields = {
            "sku": candidate.sku,
            "title": format_title(candidate.name) or candidate.name.strip(),
            "supplier_name": candidate.name,
            "slug": slugify(candidate.name),
            "platform": candidate.platform or detect_platform_from_sku(candidate.sku),
            "cost_price": candidate.cost,
            "currency": currency,
            "custom_margin": candidate.custom_margin,
            "discount_percentage": candidate.discount_percentage,
            "manual_price": candidate.manual_price,
            "price": result.final_price,
            "base_price": result.base_price,
            "stock": True,
            "is_hidden": False,
            "created_at": created_at,
            "image": candidate.image,
            "trailer_url": candidate.trailer_url,
            "description": candidate.description,
            "tags": list(candidate.tags),
        }
        return StagedWrite(kind=WriteKind.CREATE, fields=fields)

    async def _commit(self, writes: list[StagedWrite], operation: str) -> int:
        batches = chunk(writes, self.batch_size)
        total = len(writes)
        self.total_batches = len(batches)
        self._transition(DriverState.COMMITTING)

        for index, batch in enumerate(batches):
            self.current_batch = index
            try:
                await self.store.write_batch(batch)
            except Exception as e:
                self._transition(DriverState.FAILED)
                logger.error(
                    f"{operation}: batch {index + 1}/{len(batches)} failed after "
                    f"{self.committed_items}/{total} items committed: {e}"
                )
                raise BatchCommitError(
                    batch_index=index,
                    total_batches=len(batches),
                    committed_items=self.committed_items,
                    total_items=total,
                    original_error=e,
                    context={"operation": operation},
                ) from e

            self.committed_items += len(batch)
            logger.debug(
                f"{operation}: committed batch {index + 1}/{len(batches)} "
                f"({self.committed_items}/{total})"
            )
            if self.progress_callback is not None:
                self.progress_callback(self.committed_items, total)

        self._transition(DriverState.DONE)
        logger.info(f"{operation}: committed {total} writes in {len(batches)} batches")
        return self.committed_items
