"""
Stage: Recommend

One producer (the calling thread) enumerates the user IDs of X into a bounded
queue; each worker takes users from the queue, scores all of Y, drops the
user's known items, keeps the top N and appends "user,item,score" rows to its
own gzip shard <output_prefix><worker>.csv.gz. A user is taken off the queue
by exactly one worker. Users outside an active filter never enter the queue.

If any worker fails, the others and the producer stop at their next check and
the pool raises a single WorkerFailure for the first error.
"""

import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import AbstractSet, Callable, List, Optional, Tuple

from computation.errors import WorkerFailure
from computation.models import ModelFactors, Recommendation
from computation.store import Store

from .scoring import Scorer, dot_scorer
from .shard_writer import ShardWriter, format_score
from .top_n import select_top_n

logger = logging.getLogger(__name__)

# Queue slots per worker.
QUEUE_SLOTS_PER_WORKER = 64

# How often blocked queue operations re-check for a stop request.
STOP_POLL_SECONDS = 0.1

_END = object()


def default_worker_count() -> int:
    return max(1, os.cpu_count() or 1)


@dataclass
class RecommendSummary:
    """Counts from one recommend pass."""

    users: int = 0
    recommendations: int = 0
    shard_keys: List[str] = field(default_factory=list)


class RecommendationWorkerPool:
    """Computes and writes top-N recommendations for all (or filtered) users."""

    def __init__(
        self,
        store: Store,
        factors: ModelFactors,
        how_many: int,
        workers: Optional[int] = None,
        user_filter: Optional[AbstractSet[int]] = None,
        scorer: Scorer = dot_scorer,
        delimiter: str = ",",
        progress: Optional[Callable[[float], None]] = None,
    ):
        self.store = store
        self.factors = factors
        self.how_many = how_many
        limit = default_worker_count()
        self.workers = max(1, min(workers or limit, limit))
        self.user_filter = user_filter
        self.scorer = scorer
        self.delimiter = delimiter
        self.progress = progress
        self._errors: List[Tuple[int, BaseException]] = []
        self._errors_lock = threading.Lock()

    def run(self, output_prefix: str) -> RecommendSummary:
        """Write one shard per worker under output_prefix; return the totals."""
        logger.info("Starting recommendations with %d workers", self.workers)
        channel: "queue.Queue" = queue.Queue(maxsize=self.workers * QUEUE_SLOTS_PER_WORKER)
        stop = threading.Event()
        self._errors = []
        # Drop shards left by an earlier failed attempt
        self.store.recursive_delete(output_prefix)
        keys = [f"{output_prefix}{i}.csv.gz" for i in range(self.workers)]

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="Recommend") as executor:
            futures = [
                executor.submit(self._work, i, keys[i], channel, stop)
                for i in range(self.workers)
            ]
            try:
                self._produce(channel, stop)
            except BaseException:
                stop.set()
                raise
        # Leaving the executor waits for every worker

        if self._errors:
            index, error = self._errors[0]
            raise WorkerFailure(f"Recommendation worker {index} failed: {error}", worker_index=index) from error

        summary = RecommendSummary(shard_keys=keys)
        for future in futures:
            users, recommendations = future.result()
            summary.users += users
            summary.recommendations += recommendations
        logger.info(
            "Finished recommendations: %d users, %d recommendations",
            summary.users, summary.recommendations,
        )
        return summary

    def _put(self, channel: "queue.Queue", item: object, stop: threading.Event) -> bool:
        while not stop.is_set():
            try:
                channel.put(item, timeout=STOP_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _produce(self, channel: "queue.Queue", stop: threading.Event) -> None:
        X = self.factors.X
        total = max(1, len(X))
        report_every = max(1, total // 100)
        for seen, user_id in enumerate(X, start=1):
            if self.user_filter is None or user_id in self.user_filter:
                if not self._put(channel, user_id, stop):
                    return
            if self.progress is not None and seen % report_every == 0:
                self.progress(seen / total)
        for _ in range(self.workers):
            if not self._put(channel, _END, stop):
                return

    def _work(
        self,
        index: int,
        key: str,
        channel: "queue.Queue",
        stop: threading.Event,
    ) -> Tuple[int, int]:
        users = recommendations = 0
        try:
            with ShardWriter(self.store.stream_to(key), self.delimiter) as out:
                while not stop.is_set():
                    try:
                        user_id = channel.get(timeout=STOP_POLL_SECONDS)
                    except queue.Empty:
                        continue
                    if user_id is _END:
                        break
                    recommendations += self._recommend(out, user_id)
                    users += 1
        except BaseException as e:
            with self._errors_lock:
                self._errors.append((index, e))
            stop.set()
            raise
        return users, recommendations

    def recommend_for(self, user_id: int) -> List[Recommendation]:
        """Top-N recommendations for one user of X, best first."""
        factors = self.factors
        scores = self.scorer(factors.X.get(user_id), factors.Y.vectors)
        known = factors.known_item_ids.get(user_id) if factors.known_item_ids else None
        return [
            Recommendation(user_id, item_id, score)
            for item_id, score in select_top_n(factors.Y.ids, scores, self.how_many, known)
        ]

    def _recommend(self, out: ShardWriter, user_id: int) -> int:
        recs = self.recommend_for(user_id)
        user_string = self._id_string(user_id)
        for rec in recs:
            out.write(user_string, self._id_string(rec.item_id), format_score(rec.score))
        return len(recs)

    def _id_string(self, entity_id: int) -> str:
        id_strings = self.factors.id_strings
        if id_strings is None:
            return str(entity_id)
        return id_strings.get(entity_id, str(entity_id))
