"""
Recommendation Generation Runner

Steps for each generation:
1. load-model: obtain X, Y, known items (and optional ID strings) from the
   factor provider; by default they are read from <generation>/model/.
2. recommend: top-N for every user (or the configured user list), written as
   shards under <generation>/recommend/.

A different factor provider (for example an ALS trainer over inbound/) can
be passed in without touching the lifecycle.
"""

import logging
from typing import Any, Callable, Dict, Optional

from computation.config import ComputationConfig
from computation.generations import GenerationRunner, RunLock, StepTracker
from computation.models import ModelFactors
from computation.stages import (
    RecommendationWorkerPool,
    RecommendSummary,
    Scorer,
    dot_scorer,
    load_factors_from_store,
    load_user_filter,
)
from computation.store import Store
from computation.store import namespaces

logger = logging.getLogger(__name__)

FactorProvider = Callable[[Store, str], ModelFactors]

LOAD_MODEL_STEP = "load-model"
RECOMMEND_STEP = "recommend"


class RecommendationGenerationRunner(GenerationRunner):
    """Loads the generation's model and makes recommendations from it."""

    def __init__(
        self,
        config: ComputationConfig,
        store: Store,
        run_lock: Optional[RunLock] = None,
        factor_provider: FactorProvider = load_factors_from_store,
        scorer: Scorer = dot_scorer,
        **kwargs: Any,
    ):
        super().__init__(config, store, run_lock=run_lock, **kwargs)
        self.factor_provider = factor_provider
        self.scorer = scorer
        self.steps = StepTracker([LOAD_MODEL_STEP, RECOMMEND_STEP])
        self.add_state_source(self.steps)
        self._factors: Optional[ModelFactors] = None
        self._summary: Optional[RecommendSummary] = None

    def run_steps(self) -> None:
        self.steps.reset()
        self._factors = None
        self._summary = None

        with self.steps.step(LOAD_MODEL_STEP):
            model_prefix = namespaces.model_prefix(self.instance_dir, self.generation_id)
            self._factors = self.factor_provider(self.store, model_prefix)

        if not self.config.recommend_compute:
            logger.info("Recommendations not enabled; skipping")
            return

        with self.steps.step(RECOMMEND_STEP):
            user_filter = None
            if self.config.recommend_specific_users:
                user_filter = load_user_filter(self.config.recommend_users_file)
            pool = RecommendationWorkerPool(
                self.store,
                self._factors,
                how_many=self.config.recommend_how_many,
                workers=self.config.recommend_workers,
                user_filter=user_filter,
                scorer=self.scorer,
                delimiter=self.config.recommend_delimiter,
                progress=lambda p: self.steps.set_progress(RECOMMEND_STEP, p),
            )
            output_prefix = namespaces.recommend_prefix(self.instance_dir, self.generation_id)
            self._summary = pool.run(output_prefix)

    def collect_stats(self) -> Optional[Dict[str, Any]]:
        if self._factors is None:
            return None
        stats: Dict[str, Any] = {
            "users": len(self._factors.X),
            "items": len(self._factors.Y),
            "features": self._factors.X.features,
        }
        if self._summary is not None:
            stats.update({
                "recommendedUsers": self._summary.users,
                "recommendations": self._summary.recommendations,
                "recommendationShards": len(self._summary.shard_keys),
                "howMany": self.config.recommend_how_many,
            })
        return stats
