"""
Recommendation worker pool tests.

Covers the exactly-once guarantee across worker counts, the user filter,
shard layout and the single WorkerFailure raised when a worker breaks.
"""

from collections import Counter

import numpy as np
import pytest

from computation.errors import WorkerFailure
from computation.models import FactorMatrix, ModelFactors, Recommendation
from computation.stages import RecommendationWorkerPool, read_delimited
from computation.store import InMemoryStore

PREFIX = "inst/00000/recommend/"


def _factors(users=200, items=30, features=4, seed=3, **kwargs):
    rng = np.random.default_rng(seed)
    X = FactorMatrix(ids=np.arange(users, dtype=np.int64) + 1000, vectors=rng.random((users, features)))
    Y = FactorMatrix(ids=np.arange(items, dtype=np.int64), vectors=rng.random((items, features)))
    return ModelFactors(X=X, Y=Y, **kwargs)


def _rows(store):
    rows = []
    for key in store.list(PREFIX, recursive=True):
        rows.extend(read_delimited(store.stream_from(key)))
    return rows


class TestRecommendationWorkerPool:

    @pytest.mark.parametrize("workers", [1, 2, 5])
    def test_every_user_exactly_once(self, workers):
        store = InMemoryStore()
        factors = _factors()
        summary = RecommendationWorkerPool(store, factors, how_many=3, workers=workers).run(PREFIX)

        assert summary.users == 200
        assert summary.recommendations == 600
        assert len(summary.shard_keys) == workers
        per_user = Counter(row[0] for row in _rows(store))
        assert set(per_user) == {str(u) for u in factors.X}
        assert set(per_user.values()) == {3}

    def test_workers_capped_at_cpu_limit(self, monkeypatch):
        monkeypatch.setattr("computation.stages.recommend.default_worker_count", lambda: 2)
        store = InMemoryStore()
        pool = RecommendationWorkerPool(store, _factors(users=20), how_many=1, workers=6)
        assert pool.workers == 2
        assert len(pool.run(PREFIX).shard_keys) == 2
        assert RecommendationWorkerPool(store, _factors(users=1), how_many=1).workers == 2

    def test_stale_shards_removed(self):
        store = InMemoryStore()
        store.put(PREFIX + "7.csv.gz", b"left over")
        RecommendationWorkerPool(store, _factors(users=10), how_many=1, workers=2).run(PREFIX)
        assert store.list(PREFIX, recursive=True) == [PREFIX + "0.csv.gz", PREFIX + "1.csv.gz"]

    def test_user_is_written_by_one_shard(self):
        store = InMemoryStore()
        RecommendationWorkerPool(store, _factors(), how_many=2, workers=4).run(PREFIX)
        owners = {}
        for key in store.list(PREFIX, recursive=True):
            for row in read_delimited(store.stream_from(key)):
                assert owners.setdefault(row[0], key) == key

    def test_filter_restricts_users(self):
        store = InMemoryStore()
        factors = _factors(users=10)
        wanted = {1000, 1003, 5000}
        summary = RecommendationWorkerPool(
            store, factors, how_many=2, workers=3, user_filter=wanted,
        ).run(PREFIX)
        assert summary.users == 2
        assert {row[0] for row in _rows(store)} == {"1000", "1003"}

    def test_empty_filter_writes_nothing(self):
        store = InMemoryStore()
        summary = RecommendationWorkerPool(
            store, _factors(users=10), how_many=2, workers=2, user_filter=frozenset(),
        ).run(PREFIX)
        assert summary.users == 0
        assert _rows(store) == []

    def test_matches_direct_top_n(self):
        store = InMemoryStore()
        factors = _factors(users=5, items=8)
        RecommendationWorkerPool(store, factors, how_many=3, workers=2).run(PREFIX)
        rows = _rows(store)
        for user_id in factors.X:
            scores = factors.Y.vectors @ factors.X.get(user_id)
            expected = [str(i) for i in np.argsort(-scores, kind="stable")[:3]]
            got = [row[1] for row in rows if row[0] == str(user_id)]
            assert got == expected

    def test_known_items_and_id_strings(self):
        store = InMemoryStore()
        X = FactorMatrix.from_mapping({1: [1.0, 0.0]})
        Y = FactorMatrix.from_mapping({10: [1.0, 0.0], 11: [0.5, 0.0], 12: [0.1, 0.0]})
        factors = ModelFactors(
            X=X, Y=Y,
            known_item_ids={1: frozenset({10})},
            id_strings={1: "alice", 11: "book-11"},
        )
        RecommendationWorkerPool(store, factors, how_many=1, workers=1).run(PREFIX)
        assert _rows(store) == [["alice", "book-11", "0.5"]]

    def test_recommend_for(self):
        factors = ModelFactors(
            X=FactorMatrix.from_mapping({1: [1.0, 0.0]}),
            Y=FactorMatrix.from_mapping({10: [2.0, 0.0], 11: [1.0, 0.0], 12: [3.0, 0.0]}),
            known_item_ids={1: frozenset({12})},
        )
        pool = RecommendationWorkerPool(InMemoryStore(), factors, how_many=5, workers=1)
        assert pool.recommend_for(1) == [Recommendation(1, 10, 2.0), Recommendation(1, 11, 1.0)]

    def test_delimiter(self):
        store = InMemoryStore()
        factors = ModelFactors(
            X=FactorMatrix.from_mapping({1: [1.0]}),
            Y=FactorMatrix.from_mapping({2: [2.0]}),
        )
        RecommendationWorkerPool(store, factors, how_many=1, workers=1, delimiter="\t").run(PREFIX)
        key = store.list(PREFIX, recursive=True)[0]
        assert list(read_delimited(store.stream_from(key), delimiter="\t")) == [["1", "2", "2.0"]]

    def test_worker_failure(self):
        calls = Counter()

        def failing_scorer(user_vector, item_vectors):
            calls["n"] += 1
            if calls["n"] >= 5:
                raise ValueError("bad vector")
            return item_vectors @ user_vector

        store = InMemoryStore()
        pool = RecommendationWorkerPool(store, _factors(), how_many=2, workers=3, scorer=failing_scorer)
        with pytest.raises(WorkerFailure) as excinfo:
            pool.run(PREFIX)
        assert excinfo.value.step_name == "recommend"
        assert 0 <= excinfo.value.worker_index < 3
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_progress_reported(self):
        seen = []
        RecommendationWorkerPool(
            InMemoryStore(), _factors(users=50), how_many=1, workers=2, progress=seen.append,
        ).run(PREFIX)
        assert seen
        assert seen[-1] == pytest.approx(1.0)
        assert seen == sorted(seen)
