"""Stats recorder — one JSON document of run metrics per completed generation."""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from computation.store import Store
from computation.store import namespaces

logger = logging.getLogger(__name__)


class StatsRecorder:
    """Writes <generation>/stats.json."""

    def __init__(self, store: Store, instance_dir: str):
        self.store = store
        self.instance_dir = instance_dir

    def record(
        self,
        generation_id: int,
        pre_run_bytes: int,
        post_run_bytes: int,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Merge base sizes with extra metrics and write them once. Returns what was written."""
        stats: Dict[str, Any] = {
            "preRunBytes": pre_run_bytes,
            "postRunBytes": post_run_bytes,
        }
        if extra:
            stats.update(extra)
        key = namespaces.stats_key(self.instance_dir, generation_id)
        logger.info("Dumping some stats on generation %s", generation_id)
        with self.store.stream_to(key) as out:
            out.write(json.dumps(stats).encode("utf-8"))
        return stats
