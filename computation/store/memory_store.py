"""
In-memory store.

Behaves like a small filesystem: objects and prefixes carry modification
times, creating or deleting a child refreshes its parent prefix's time. The
clock is injectable so tests can age uploads without sleeping. Thread-safe;
recommendation workers write shards into it concurrently.
"""

import io
import threading
import time
from typing import BinaryIO, Callable, Dict, List, Optional

from computation.errors import StoreIOError


def _parent(key: str) -> str:
    """Parent prefix of a key or prefix: "a/b/c" -> "a/b/", "a/b/" -> "a/"."""
    trimmed = key.rstrip("/")
    idx = trimmed.rfind("/")
    return trimmed[: idx + 1] if idx >= 0 else ""


def _as_prefix(key: str) -> str:
    return key if key.endswith("/") else key + "/"


class _CommitOnClose(io.BytesIO):
    """Buffer whose contents become an object when closed."""

    def __init__(self, commit: Callable[[bytes], None]):
        super().__init__()
        self._commit = commit

    def close(self) -> None:
        if not self.closed:
            self._commit(self.getvalue())
        super().close()


class InMemoryStore:
    """Store kept entirely in process memory."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.RLock()
        self._objects: Dict[str, bytes] = {}
        self._mtimes: Dict[str, float] = {}
        self._dirs: Dict[str, float] = {}

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def put(self, key: str, data: bytes = b"", mtime: Optional[float] = None) -> None:
        """Create an object directly, optionally with an explicit modification time."""
        with self._lock:
            self._write(key, data)
            if mtime is not None:
                self._mtimes[key] = mtime

    def set_last_modified(self, key: str, mtime: float) -> None:
        with self._lock:
            if key in self._objects:
                self._mtimes[key] = mtime
            elif _as_prefix(key) in self._dirs:
                self._dirs[_as_prefix(key)] = mtime
            else:
                raise StoreIOError(f"No such key {key!r}", key=key)

    def read(self, key: str) -> bytes:
        with self._lock:
            if key not in self._objects:
                raise StoreIOError(f"No such key {key!r}", key=key)
            return self._objects[key]

    def snapshot(self) -> Dict[str, bytes]:
        """Copy of all objects, for before/after comparisons."""
        with self._lock:
            return dict(self._objects)

    # ------------------------------------------------------------------
    # Store protocol
    # ------------------------------------------------------------------

    def _ensure_dirs(self, prefix: str) -> None:
        now = self._clock()
        while prefix and prefix not in self._dirs:
            self._dirs[prefix] = now
            prefix = _parent(prefix)

    def _write(self, key: str, data: bytes) -> None:
        if key.endswith("/"):
            raise StoreIOError(f"Cannot write object at prefix {key!r}", key=key)
        parent = _parent(key)
        self._ensure_dirs(parent)
        now = self._clock()
        self._objects[key] = data
        self._mtimes[key] = now
        if parent:
            self._dirs[parent] = now

    def list(self, prefix: str, recursive: bool = False) -> List[str]:
        prefix = _as_prefix(prefix)
        with self._lock:
            if recursive:
                return sorted(k for k in self._objects if k.startswith(prefix))
            children = [k for k in self._objects if _parent(k) == prefix]
            children += [d for d in self._dirs if _parent(d) == prefix and d != prefix]
            return sorted(children)

    def exists(self, key: str, is_file: bool = True) -> bool:
        with self._lock:
            if is_file:
                return key in self._objects
            return _as_prefix(key) in self._dirs

    def last_modified(self, key: str) -> float:
        with self._lock:
            if key in self._mtimes:
                return self._mtimes[key]
            prefix = _as_prefix(key)
            if prefix in self._dirs:
                return self._dirs[prefix]
            raise StoreIOError(f"No such key {key!r}", key=key)

    def size_recursive(self, prefix: str) -> int:
        with self._lock:
            if prefix in self._objects:
                return len(self._objects[prefix])
            prefix = _as_prefix(prefix)
            return sum(len(v) for k, v in self._objects.items() if k.startswith(prefix))

    def mkdir(self, prefix: str) -> None:
        prefix = _as_prefix(prefix)
        with self._lock:
            if prefix in self._dirs:
                return
            self._ensure_dirs(prefix)
            parent = _parent(prefix)
            if parent:
                self._dirs[parent] = self._clock()

    def touch(self, key: str) -> None:
        with self._lock:
            self._write(key, self._objects.get(key, b""))

    def delete(self, key: str) -> None:
        with self._lock:
            if key not in self._objects:
                raise StoreIOError(f"No such key {key!r}", key=key)
            del self._objects[key]
            del self._mtimes[key]
            parent = _parent(key)
            if parent in self._dirs:
                self._dirs[parent] = self._clock()

    def recursive_delete(self, prefix: str) -> None:
        with self._lock:
            if prefix in self._objects:
                self.delete(prefix)
                return
            prefix = _as_prefix(prefix)
            for k in [k for k in self._objects if k.startswith(prefix)]:
                del self._objects[k]
                del self._mtimes[k]
            existed = prefix in self._dirs
            for d in [d for d in self._dirs if d.startswith(prefix)]:
                del self._dirs[d]
            parent = _parent(prefix)
            if existed and parent in self._dirs:
                self._dirs[parent] = self._clock()

    def stream_to(self, key: str) -> BinaryIO:
        def commit(data: bytes) -> None:
            with self._lock:
                self._write(key, data)

        return _CommitOnClose(commit)

    def stream_from(self, key: str) -> BinaryIO:
        return io.BytesIO(self.read(key))
