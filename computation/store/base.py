"""
Store abstraction.

A hierarchical key/prefix object store shared by every process working on an
instance. Keys use "/" separators; a key ending in "/" names a prefix
("directory"). Implementations: LocalStore (filesystem), InMemoryStore (tests
and single-process integration runs). Every failure surfaces as StoreIOError.
"""

from typing import BinaryIO, List, Protocol


class Store(Protocol):
    """Protocol for the shared generation store."""

    def list(self, prefix: str, recursive: bool = False) -> List[str]:
        """
        Keys under prefix, sorted.
        Non-recursive: immediate children; child prefixes end in "/".
        Recursive: every object (not prefix) below prefix.
        Missing prefix lists as empty.
        """
        ...

    def exists(self, key: str, is_file: bool = True) -> bool:
        """True if the object (is_file) or prefix (not is_file) exists."""
        ...

    def last_modified(self, key: str) -> float:
        """Modification time of an object or prefix, in epoch seconds."""
        ...

    def size_recursive(self, prefix: str) -> int:
        """Total bytes of all objects under prefix; 0 when missing."""
        ...

    def mkdir(self, prefix: str) -> None:
        """Create prefix (and parents). Idempotent."""
        ...

    def touch(self, key: str) -> None:
        """Create an empty marker object, or refresh its modification time."""
        ...

    def delete(self, key: str) -> None:
        """Delete a single object. Missing objects are an error."""
        ...

    def recursive_delete(self, prefix: str) -> None:
        """Delete prefix and everything below it. Missing prefix is a no-op."""
        ...

    def stream_to(self, key: str) -> BinaryIO:
        """Writable binary stream; the object is visible once the stream is closed."""
        ...

    def stream_from(self, key: str) -> BinaryIO:
        """Readable binary stream over an existing object."""
        ...
