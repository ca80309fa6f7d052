"""
Generation Catalog

Generations are the numeric children of the instance prefix. The catalog also
enforces retention: the oldest generations beyond the configured count are
deleted before any decision about the next generation is made.

IDs wrap from 99999 to 00000, which then sorts oldest and is pruned first.
"""

import logging
from typing import List, Optional, Tuple

from computation.store import Store
from computation.store import namespaces

logger = logging.getLogger(__name__)


def parse_generation_id(prefix: str) -> int:
    """Generation ID from a prefix like "instance/00042/"."""
    return int(namespaces.last_non_empty_delimited(prefix))


class GenerationCatalog:
    """Reads and prunes the generation prefixes of one instance."""

    def __init__(self, store: Store, instance_dir: str):
        self.store = store
        self.instance_dir = instance_dir

    def list_generations(self) -> List[str]:
        """Generation prefixes, ascending by ID."""
        children = self.store.list(namespaces.instance_prefix(self.instance_dir), recursive=False)
        generations = [
            c for c in children
            if c.endswith("/") and namespaces.last_non_empty_delimited(c).isdigit()
        ]
        generations.sort(key=parse_generation_id)
        return generations

    def enforce_retention(self, generations: List[str], keep: int) -> List[str]:
        """Delete the oldest generations beyond keep; return the survivors."""
        excess = len(generations) - keep
        if excess <= 0:
            return generations
        to_delete = generations[:excess]
        logger.info("Deleting old generations: %s", to_delete)
        for prefix in to_delete:
            self.store.recursive_delete(prefix)
        return generations[excess:]

    def is_done(self, generation_id: int) -> bool:
        return self.store.exists(namespaces.done_key(self.instance_dir, generation_id))

    def find_last_done(self, generations: List[str]) -> Optional[Tuple[int, int]]:
        """(generation ID, index) of the newest done generation, or None."""
        for index in range(len(generations) - 1, -1, -1):
            generation_id = parse_generation_id(generations[index])
            if self.is_done(generation_id):
                return generation_id, index
        return None

    def has_input(self, generation_id: int) -> bool:
        """True if any bytes were uploaded to the generation's inbound area."""
        inbound = namespaces.inbound_prefix(self.instance_dir, generation_id)
        return self.store.size_recursive(inbound) > 0

    def instance_exists(self) -> bool:
        return self.store.exists(namespaces.instance_prefix(self.instance_dir), is_file=False)

    def make_generation(self, generation_id: int, instance_exists: Optional[bool] = None) -> None:
        """Open a generation for uploads by creating its inbound area."""
        if instance_exists is None:
            instance_exists = self.instance_exists()
        if not instance_exists:
            logger.warning("No instance directory at %s -- is this a typo?", self.instance_dir)
        self.store.mkdir(namespaces.inbound_prefix(self.instance_dir, generation_id))
