"""
Local filesystem store.

Keys map to paths under a root directory; prefixes map to directories. Used for
single-machine deployments and for anything mounted as a shared filesystem.

Usage:
    store = LocalStore("/data/store")
    store.mkdir("instance/00000/inbound/")
    with store.stream_to("instance/00000/stats.json") as out:
        out.write(b"{}")
"""

import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, List, Union

from computation.errors import StoreIOError


@contextmanager
def _translate_errors(operation: str, key: str) -> Iterator[None]:
    """Re-raise OSError from filesystem calls as StoreIOError."""
    try:
        yield
    except StoreIOError:
        raise
    except OSError as e:
        raise StoreIOError(f"{operation} failed for {key!r}: {e}", key=key) from e


class LocalStore:
    """Store backed by a directory tree."""

    def __init__(self, root: Union[Path, str]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / key.strip("/")

    def _key(self, path: Path) -> str:
        rel = path.relative_to(self.root).as_posix()
        return rel + "/" if path.is_dir() else rel

    def list(self, prefix: str, recursive: bool = False) -> List[str]:
        path = self._path(prefix)
        with _translate_errors("list", prefix):
            if not path.is_dir():
                return []
            if recursive:
                keys = [self._key(Path(d) / f) for d, _, files in os.walk(path) for f in files]
            else:
                keys = [self._key(child) for child in path.iterdir()]
        return sorted(keys)

    def exists(self, key: str, is_file: bool = True) -> bool:
        path = self._path(key)
        return path.is_file() if is_file else path.is_dir()

    def last_modified(self, key: str) -> float:
        with _translate_errors("last_modified", key):
            return self._path(key).stat().st_mtime

    def size_recursive(self, prefix: str) -> int:
        path = self._path(prefix)
        with _translate_errors("size_recursive", prefix):
            if path.is_file():
                return path.stat().st_size
            if not path.is_dir():
                return 0
            return sum(
                (Path(d) / f).stat().st_size for d, _, files in os.walk(path) for f in files
            )

    def mkdir(self, prefix: str) -> None:
        with _translate_errors("mkdir", prefix):
            self._path(prefix).mkdir(parents=True, exist_ok=True)

    def touch(self, key: str) -> None:
        path = self._path(key)
        with _translate_errors("touch", key):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()

    def delete(self, key: str) -> None:
        with _translate_errors("delete", key):
            self._path(key).unlink()

    def recursive_delete(self, prefix: str) -> None:
        path = self._path(prefix)
        with _translate_errors("recursive_delete", prefix):
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()

    def stream_to(self, key: str) -> BinaryIO:
        path = self._path(key)
        with _translate_errors("stream_to", key):
            path.parent.mkdir(parents=True, exist_ok=True)
            return open(path, "wb")

    def stream_from(self, key: str) -> BinaryIO:
        with _translate_errors("stream_from", key):
            return open(self._path(key), "rb")
