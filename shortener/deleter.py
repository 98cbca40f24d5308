"""Batched, concurrent deletion of short URLs on behalf of a user.

A deletion splits the requested ids into fixed-size batches and hands them to
a fixed number of workers. Every worker pulls the next batch from the shared
batch iterator, so a batch is only built when a worker is ready to take it,
and calls ``mark_as_deleted`` on the storage backend. Outcomes go to a results
queue which is drained until every worker has finished.

A failed batch never stops the others. Failures are logged as they arrive and
collected in the returned ``DeletionReport``. Since workers finish in any
order, the order of ``failures`` (and therefore ``report.error``) is not
the input order.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from .errors import DeletionCancelledError
from .storage.base import URLStorageBase

DEFAULT_BATCH_SIZE = 100
DEFAULT_NUM_WORKERS = 5

# Pushed after all workers joined; ends the drain loop
_CLOSED = object()


def generate_batches(short_ids: Sequence[str], batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[List[str]]:
    """Split ids into ordered batches of at most batch_size items.

    Args:
        short_ids: Ids to split
        batch_size: Maximum ids per batch

    Yields:
        Consecutive, non-empty lists of ids

    Raises:
        ValueError: If batch_size is less than 1
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    for start in range(0, len(short_ids), batch_size):
        yield list(short_ids[start:start + batch_size])


@dataclass
class BatchFailure:
    """A batch whose deletion failed or was cancelled."""

    short_ids: List[str]
    error: Exception


@dataclass
class DeletionReport:
    """Outcome of one deletion pipeline run."""

    user_id: str
    total_ids: int
    batches: int = 0
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def error(self) -> Optional[Exception]:
        """Most recently observed failure, or None if every batch succeeded."""
        if self.failures:
            return self.failures[-1].error
        return None


class URLDeleter:
    """Marks short URLs as deleted using a bounded pool of async workers."""

    def __init__(
        self,
        store: URLStorageBase,
        logger: Optional[logging.Logger] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
    ):
        """Initialize URL deleter.

        Args:
            store: Storage backend shared by all workers
            logger: Optional logger
            batch_size: Maximum ids per storage call
            num_workers: Number of concurrent workers
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")

        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.batch_size = batch_size
        self.num_workers = num_workers

    async def delete_urls(
        self,
        short_ids: Sequence[str],
        user_id: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DeletionReport:
        """Mark the given short ids as deleted for user_id.

        Batch failures do not raise; they are logged and returned in the report.
        Once cancel_event is set, batches not yet started are reported as
        cancelled instead of being sent to storage. Calls already in flight
        run to completion.

        Args:
            short_ids: Ids to delete, in request order
            user_id: User the ids are deleted for
            cancel_event: Optional cancellation signal

        Returns:
            DeletionReport with one entry per failed batch
        """
        self.logger.info(f"Starting URL deletion: {len(short_ids)} ids for user {user_id}")

        report = DeletionReport(user_id=user_id, total_ids=len(short_ids))
        batches = generate_batches(short_ids, self.batch_size)
        results: asyncio.Queue = asyncio.Queue()

        workers = [
            asyncio.create_task(self._worker(user_id, batches, results, cancel_event))
            for _ in range(self.num_workers)
        ]
        closer = asyncio.create_task(self._close_when_done(workers, results))

        try:
            while True:
                outcome = await results.get()
                if outcome is _CLOSED:
                    break

                batch, error = outcome
                report.batches += 1
                if error is not None:
                    self.logger.error(
                        f"Error marking URLs as deleted for user {user_id}: {error!r} "
                        f"(batch of {len(batch)}: {batch})"
                    )
                    report.failures.append(BatchFailure(short_ids=batch, error=error))

            await closer
        except asyncio.CancelledError:
            for task in workers:
                task.cancel()
            closer.cancel()
            await asyncio.gather(*workers, closer, return_exceptions=True)
            raise

        if report.ok:
            self.logger.info(f"All URLs processed successfully for user {user_id} ({report.batches} batches)")
        else:
            self.logger.error(
                f"URL deletion for user {user_id} finished with "
                f"{len(report.failures)} failed batches out of {report.batches}"
            )

        return report

    async def _worker(
        self,
        user_id: str,
        batches: Iterator[List[str]],
        results: asyncio.Queue,
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        # The iterator is shared; next() never suspends, so batches are taken
        # exactly once across workers
        for batch in batches:
            error: Optional[Exception] = None

            if cancel_event is not None and cancel_event.is_set():
                error = DeletionCancelledError(f"Deletion cancelled before batch of {len(batch)} ids")
            else:
                try:
                    await self.store.mark_as_deleted(batch, user_id)
                except Exception as e:
                    error = e

            await results.put((batch, error))

    @staticmethod
    async def _close_when_done(workers: List[asyncio.Task], results: asyncio.Queue) -> None:
        try:
            await asyncio.gather(*workers)
        finally:
            await results.put(_CLOSED)
