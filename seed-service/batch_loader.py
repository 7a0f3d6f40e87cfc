"""
Batch Loader - chunked, bounded-parallel bulk inserts

Splits a record total into fixed-size batches and runs them in sequential
chunks of `parallel_batches`. All batches of a chunk start together and the
loader waits for every one of them to settle before starting the next
chunk, so a region never has more than `parallel_batches` inserts in
flight.

Record generation runs on one dedicated worker thread per load, in batch
order, so the event loop stays free while inserts are in flight.

No retries and no rollback: a failed batch fails the whole load once its
chunk settles, and batches that already committed stay committed.
"""

import asyncio
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional

from config import SeedSettings
from generators import EntityKind, GenerateFn, Record, as_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Batch:
    index: int
    start_index: int
    count: int


def plan_batches(total: int, batch_size: int) -> List[Batch]:
    """
    Partition `total` records into ceil(total / batch_size) batches.

    Every batch holds batch_size records except possibly the last one.
    """
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")
    if batch_size <= 0:
        raise ValueError(f"batch_size must be > 0, got {batch_size}")

    batch_count = math.ceil(total / batch_size)
    batches = []
    for index in range(batch_count):
        start_index = index * batch_size
        batches.append(Batch(index, start_index, min(batch_size, total - start_index)))
    return batches


def chunked(batches: List[Batch], parallel: int) -> List[List[Batch]]:
    if parallel <= 0:
        raise ValueError(f"parallel must be > 0, got {parallel}")
    return [batches[i:i + parallel] for i in range(0, len(batches), parallel)]


class BatchLoader:
    """Loads one entity kind into a region store."""

    def __init__(self, settings: SeedSettings):
        self.settings = settings

    async def _run_batch(self, kind: EntityKind, store: Any, generate_fn: GenerateFn,
                         batch: Batch, gen_pool: ThreadPoolExecutor) -> List[Record]:
        loop = asyncio.get_running_loop()
        records = await loop.run_in_executor(gen_pool, generate_fn, batch.count, batch.start_index)
        rows = [as_row(kind, r) for r in records]
        await asyncio.to_thread(store.insert_batch, kind.table, kind.columns, rows)
        return records

    async def load(self, kind: EntityKind, store: Any, generate_fn: GenerateFn,
                   total: Optional[int] = None) -> List[Record]:
        """
        Generate and insert `total` records of one kind.

        Args:
            kind: Entity kind, selects table and column order
            store: Storage handle with insert_batch(table, columns, rows)
            generate_fn: (count, start_index) -> records
            total: Record count (defaults to settings.total_records)

        Returns:
            All generated records, concatenated in batch order

        Raises:
            The first batch failure of the failing chunk
        """
        if total is None:
            total = self.settings.total_records

        batches = plan_batches(total, self.settings.batch_size)
        chunks = chunked(batches, self.settings.parallel_batches)
        results: List[Record] = []

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="generate") as gen_pool:
            for chunk_no, chunk in enumerate(chunks, start=1):
                logger.info(
                    f"Processing {kind.label} chunk {chunk_no}/{len(chunks)} "
                    f"({len(chunk)} parallel batches)"
                )

                outcomes = await asyncio.gather(
                    *(self._run_batch(kind, store, generate_fn, batch, gen_pool)
                      for batch in chunk),
                    return_exceptions=True
                )

                failures = [o for o in outcomes if isinstance(o, BaseException)]
                if failures:
                    logger.error(
                        f"{kind.label}: {len(failures)}/{len(chunk)} batches failed in "
                        f"chunk {chunk_no}/{len(chunks)}: {failures[0]}"
                    )
                    raise failures[0]

                for records in outcomes:
                    results.extend(records)

                done = chunk[-1].start_index + chunk[-1].count
                progress = round(done / total * 100) if total else 100
                logger.info(f"{kind.label} progress: {progress}% complete")

        return results
