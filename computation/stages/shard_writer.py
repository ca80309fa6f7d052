"""
Delimited text over gzip, the format of recommendation shards and model files.

Rows are CSV-quoted only when a field contains the delimiter, a quote or a
newline, and are terminated by "\n".
"""

import csv
import gzip
import io
from typing import BinaryIO, Iterator, List

import numpy as np


def format_score(score: float) -> str:
    """Shortest text that round-trips the score as float32 (e.g. "5.0", "0.1")."""
    return str(np.float32(score))


class ShardWriter:
    """Writes gzip-compressed delimited rows to a binary stream, closing it when done."""

    def __init__(self, stream: BinaryIO, delimiter: str = ","):
        self._stream = stream
        self._gzip = gzip.GzipFile(fileobj=stream, mode="wb")
        self._text = io.TextIOWrapper(self._gzip, encoding="utf-8", newline="")
        self._writer = csv.writer(self._text, delimiter=delimiter, lineterminator="\n")
        self.rows = 0

    def write(self, *fields: str) -> None:
        self._writer.writerow(fields)
        self.rows += 1

    def close(self) -> None:
        try:
            self._text.close()
        finally:
            self._stream.close()

    def __enter__(self) -> "ShardWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def read_delimited(stream: BinaryIO, delimiter: str = ",", compressed: bool = True) -> Iterator[List[str]]:
    """Yield rows from a (gzip) delimited stream; closes the stream when exhausted."""
    with stream:
        raw = gzip.GzipFile(fileobj=stream, mode="rb") if compressed else stream
        with io.TextIOWrapper(raw, encoding="utf-8", newline="") as text:
            for row in csv.reader(text, delimiter=delimiter):
                if row:
                    yield row
