"""
Factor model — per-entity feature vectors produced by matrix factorization.

Contains:
- FactorMatrix: entity ID -> dense vector, stored as parallel arrays
- ModelFactors: X (users), Y (items), known items and optional ID strings
- Recommendation: one (user, item, score) triple
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, Mapping, NamedTuple, Optional, Sequence

import numpy as np


class Recommendation(NamedTuple):
    user_id: int
    item_id: int
    score: float


@dataclass(frozen=True, eq=False)
class FactorMatrix:
    """Immutable mapping of 64-bit entity IDs to float32 vectors of equal length."""

    ids: np.ndarray
    vectors: np.ndarray
    _rows: Dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ids = np.array(self.ids, dtype=np.int64)
        vectors = np.array(self.vectors, dtype=np.float32)
        if vectors.ndim != 2:
            vectors = vectors.reshape(len(ids), -1)
        if len(ids) != vectors.shape[0]:
            raise ValueError(f"{len(ids)} ids but {vectors.shape[0]} vectors")
        rows = {int(entity_id): row for row, entity_id in enumerate(ids)}
        if len(rows) != len(ids):
            raise ValueError("Duplicate entity IDs in factor matrix")
        ids.setflags(write=False)
        vectors.setflags(write=False)
        object.__setattr__(self, "ids", ids)
        object.__setattr__(self, "vectors", vectors)
        object.__setattr__(self, "_rows", rows)

    @classmethod
    def from_mapping(cls, features: Mapping[int, Sequence[float]]) -> "FactorMatrix":
        """Build from {entity_id: vector}; insertion order is kept."""
        ids = np.fromiter(features.keys(), dtype=np.int64, count=len(features))
        if not features:
            return cls(ids=ids, vectors=np.zeros((0, 0), dtype=np.float32))
        return cls(ids=ids, vectors=np.vstack([np.asarray(v, dtype=np.float32) for v in features.values()]))

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, entity_id: int) -> bool:
        return int(entity_id) in self._rows

    def __iter__(self) -> Iterator[int]:
        return (int(i) for i in self.ids)

    def get(self, entity_id: int) -> Optional[np.ndarray]:
        row = self._rows.get(int(entity_id))
        return None if row is None else self.vectors[row]

    @property
    def features(self) -> int:
        return self.vectors.shape[1] if self.vectors.ndim == 2 else 0


@dataclass(frozen=True)
class ModelFactors:
    """Everything the recommend step reads; shared read-only by all workers."""

    X: FactorMatrix
    Y: FactorMatrix
    known_item_ids: Optional[Mapping[int, FrozenSet[int]]] = None
    id_strings: Optional[Mapping[int, str]] = None
