"""
Seeding Orchestrator

Seeds one region in four strictly sequential phases:

    Users -> Products -> Orders (user pool) -> Order Items (order + product pools)

Each phase finishes, and its identifier pool is extracted, before the next
one starts. A failing phase aborts the run; nothing is cleaned up.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from batch_loader import BatchLoader
from config import SeedSettings
from generators import (
    EntityGenerator,
    EntityKind,
    OrderGenParams,
    OrderItemGenParams,
    ProductGenParams,
    UserGenParams,
)
from regions import RegionRegistry

logger = logging.getLogger(__name__)


@dataclass
class PhaseResult:
    kind: str
    records: int
    elapsed_s: float


@dataclass
class SeedSummary:
    region: str
    phases: List[PhaseResult] = field(default_factory=list)
    total_records: int = 0
    elapsed_s: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SeedingOrchestrator:
    def __init__(
        self,
        registry: RegionRegistry,
        settings: SeedSettings,
        generator: Optional[EntityGenerator] = None,
        loader: Optional[BatchLoader] = None
    ):
        self.registry = registry
        self.settings = settings
        self.generator = generator or EntityGenerator()
        self.loader = loader or BatchLoader(settings)

    async def _phase(self, summary: SeedSummary, step: int, store: Any,
                     kind: EntityKind, params) -> List[str]:
        logger.info(f"Phase {step}/4: Generating {kind.label}")
        start = time.time()

        records = await self.loader.load(
            kind, store, self.generator.bind(kind, params), self.settings.total_records
        )

        elapsed = time.time() - start
        summary.phases.append(PhaseResult(kind.table, len(records), round(elapsed, 3)))
        summary.total_records += len(records)
        logger.info(f"{kind.label} completed in {elapsed:.1f}s")
        return [r.id for r in records]

    async def seed_region(self, region_code: str) -> SeedSummary:
        """
        Seed users, products, orders and order items into one region.

        Raises:
            UnknownRegionError: Region not configured (no storage touched)
            StorageError: A batch insert failed
        """
        store = self.registry.resolve(region_code)
        s = self.settings

        logger.info(f"Starting to seed region: {region_code}")
        logger.info(
            f"Target: {s.total_records:,} records per table, batch size {s.batch_size:,}, "
            f"{s.parallel_batches} parallel batches"
        )

        summary = SeedSummary(region=region_code)
        start = time.time()

        try:
            user_ids = await self._phase(summary, 1, store, EntityKind.USERS, UserGenParams())
            product_ids = await self._phase(summary, 2, store, EntityKind.PRODUCTS, ProductGenParams())
            order_ids = await self._phase(
                summary, 3, store, EntityKind.ORDERS, OrderGenParams(user_ids)
            )
            await self._phase(
                summary, 4, store, EntityKind.ORDER_ITEMS,
                OrderItemGenParams(order_ids, product_ids)
            )
        except Exception as e:
            logger.error(f"Error seeding region {region_code}: {e}", exc_info=True)
            raise

        summary.elapsed_s = round(time.time() - start, 3)
        logger.info(f"Region {region_code} seeding completed in {summary.elapsed_s:.1f}s")
        logger.info(f"Total records: {summary.total_records:,}")
        return summary

    async def seed_all(self, region_codes: Optional[List[str]] = None) -> List[SeedSummary]:
        """Seed regions one after another to bound total database load."""
        codes = self.registry.codes if region_codes is None else region_codes
        # fail on a bad code before seeding anything
        for code in codes:
            self.registry.resolve(code)

        summaries = []
        for code in codes:
            summaries.append(await self.seed_region(code))
        return summaries

    def record_count(self, region_code: str) -> int:
        """Current users row count for a region."""
        return self.registry.resolve(region_code).count("users")
