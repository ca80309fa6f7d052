"""
Top-N selection for one user.

Known items are removed, then items are ranked by score descending with ties
broken by item ID ascending. Only the boundary score is partitioned so large
item sets never get fully sorted.
"""

from typing import AbstractSet, List, Optional, Tuple

import numpy as np


def select_top_n(
    item_ids: np.ndarray,
    scores: np.ndarray,
    how_many: int,
    exclude: Optional[AbstractSet[int]] = None,
) -> List[Tuple[int, float]]:
    """Return up to how_many (item_id, score) pairs, best first."""
    if how_many <= 0 or len(item_ids) == 0:
        return []
    scores = np.where(np.isnan(scores), -np.inf, scores)
    if exclude:
        keep = ~np.isin(item_ids, np.fromiter(exclude, dtype=np.int64, count=len(exclude)))
        item_ids = item_ids[keep]
        scores = scores[keep]
    n = len(item_ids)
    if n == 0:
        return []
    if how_many < n:
        # Everything scoring at least the how_many-th best, ties included
        threshold = np.partition(scores, n - how_many)[n - how_many]
        candidates = np.flatnonzero(scores >= threshold)
        item_ids = item_ids[candidates]
        scores = scores[candidates]
    order = np.lexsort((item_ids, -scores))[:how_many]
    return [(int(item_ids[i]), float(scores[i])) for i in order]
