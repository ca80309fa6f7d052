"""
Factor loading.

Layout under <generation>/model/ (any number of part files per directory,
".gz" parts are gzip-compressed):

    X/           userID,f1,...,fk
    Y/           itemID,f1,...,fk
    knownItems/  userID,itemID1,itemID2,...      (optional)
    idMapping/   numericID,stringID              (optional)
"""

import logging
from typing import Dict, FrozenSet, List, Optional

import numpy as np

from computation.errors import ComputationStepError
from computation.models import FactorMatrix, ModelFactors
from computation.store import Store

from .shard_writer import read_delimited

logger = logging.getLogger(__name__)


def _part_keys(store: Store, prefix: str) -> List[str]:
    return [
        k for k in store.list(prefix, recursive=True)
        if not k.rsplit("/", 1)[-1].startswith((".", "_"))
    ]


def _rows(store: Store, key: str):
    return read_delimited(store.stream_from(key), compressed=key.endswith(".gz"))


def read_factor_matrix(store: Store, prefix: str) -> FactorMatrix:
    """Read one factor matrix from every part file under prefix."""
    keys = _part_keys(store, prefix)
    if not keys:
        raise ComputationStepError(f"No factor files under {prefix}", step_name="load-model")
    ids: List[int] = []
    vectors: List[List[float]] = []
    for key in keys:
        for row in _rows(store, key):
            try:
                ids.append(int(row[0]))
                vectors.append([float(v) for v in row[1:]])
            except ValueError:
                raise ComputationStepError(f"Bad factor row in {key}: {row!r}", step_name="load-model") from None
    if not ids:
        return FactorMatrix(ids=np.zeros(0, dtype=np.int64), vectors=np.zeros((0, 0), dtype=np.float32))
    widths = {len(v) for v in vectors}
    if len(widths) != 1:
        raise ComputationStepError(f"Inconsistent feature counts under {prefix}: {sorted(widths)}", step_name="load-model")
    return FactorMatrix(ids=np.array(ids, dtype=np.int64), vectors=np.array(vectors, dtype=np.float32))


def read_known_items(store: Store, prefix: str) -> Optional[Dict[int, FrozenSet[int]]]:
    """userID -> known item IDs, or None when the model has no known items."""
    keys = _part_keys(store, prefix)
    if not keys:
        return None
    known: Dict[int, set] = {}
    for key in keys:
        for row in _rows(store, key):
            user_id = int(row[0])
            known.setdefault(user_id, set()).update(int(i) for i in row[1:] if i)
    return {user_id: frozenset(items) for user_id, items in known.items()}


def read_id_mapping(store: Store, prefix: str) -> Optional[Dict[int, str]]:
    keys = _part_keys(store, prefix)
    if not keys:
        return None
    mapping: Dict[int, str] = {}
    for key in keys:
        for row in _rows(store, key):
            mapping[int(row[0])] = row[1]
    return mapping


def load_factors_from_store(store: Store, model_prefix: str) -> ModelFactors:
    """Default factor provider for RecommendationGenerationRunner."""
    X = read_factor_matrix(store, model_prefix + "X/")
    Y = read_factor_matrix(store, model_prefix + "Y/")
    if len(X) and len(Y) and X.features != Y.features:
        raise ComputationStepError(
            f"X has {X.features} features but Y has {Y.features}", step_name="load-model"
        )
    known = read_known_items(store, model_prefix + "knownItems/")
    id_strings = read_id_mapping(store, model_prefix + "idMapping/")
    logger.info("Loaded model: %d users, %d items, %d features", len(X), len(Y), X.features)
    return ModelFactors(X=X, Y=Y, known_item_ids=known, id_strings=id_strings)
