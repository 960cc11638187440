"""CSV persistence for merge request references.

File format, one record per line, no header:

    <iid>,<head_sha>\\n

Fields are a decimal number and a hex SHA, so no quoting is ever needed.
Reading fails closed: a single malformed line rejects the whole file.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable
from pathlib import Path
from typing import IO, Any

from gitlab_mr_refs.logging import get_logger
from gitlab_mr_refs.schemas.refs import MergeRequestRef

logger = get_logger(__name__)

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


class RefFileError(ValueError):
    """Raised when a references file is malformed."""

    def __init__(self, message: str, line: int | None = None, source: str | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)
        self.line = line
        self.source = source


def _writer(stream: IO[str]) -> Any:
    return csv.writer(stream, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)


def _row(ref: MergeRequestRef) -> list[str]:
    return [str(ref.iid), ref.head_sha]


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------
def encode_refs(refs: Iterable[MergeRequestRef]) -> str:
    """Encode references as CSV text."""
    buffer = io.StringIO()
    writer = _writer(buffer)
    for ref in refs:
        writer.writerow(_row(ref))
    return buffer.getvalue()


def write_refs(refs: Iterable[MergeRequestRef], path: str | Path) -> Path:
    """Write references to a CSV file, replacing any existing content.

    Returns:
        Absolute path of the written file
    """
    target = Path(path)
    with target.open("w", encoding="utf-8", newline="") as f:
        writer = _writer(f)
        for ref in refs:
            writer.writerow(_row(ref))
    return target.resolve()


class CsvRefSink:
    """Streaming sink that appends one row per reference.

    Each row is flushed before the call returns, so a run that aborts
    after N references leaves exactly those N rows on disk. A run that
    aborts before the first reference removes the file it created.

    Usage:
        with CsvRefSink("group-project.csv") as sink:
            fetcher.fetch("group/project", sink)
        print(sink.count, sink.path)
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).resolve()
        self._file: IO[str] | None = None
        self._writer: Any = None
        self._count = 0

    @property
    def path(self) -> Path:
        """Absolute path of the output file."""
        return self._path

    @property
    def count(self) -> int:
        """Number of references written so far."""
        return self._count

    def open(self) -> CsvRefSink:
        """Create (or truncate) the output file."""
        self._file = self._path.open("w", encoding="utf-8", newline="")
        self._writer = _writer(self._file)
        self._count = 0
        logger.debug("Writing merge request references to {}", self._path)
        return self

    def close(self) -> None:
        """Close the output file."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self) -> CsvRefSink:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
        if exc_type is not None and self._count == 0:
            self._path.unlink(missing_ok=True)
            logger.debug("Removed {} after a failed run with no references", self._path)

    def __call__(self, ref: MergeRequestRef) -> None:
        if self._file is None or self._writer is None:
            raise RuntimeError("CsvRefSink is not open")
        self._writer.writerow(_row(ref))
        self._file.flush()
        self._count += 1


# -----------------------------------------------------------------------------
# Decoding
# -----------------------------------------------------------------------------
def decode_refs(text: str, *, source: str | None = None) -> list[MergeRequestRef]:
    """Decode CSV text into references.

    Args:
        text: File content
        source: Optional file name used in error messages

    Raises:
        RefFileError: On the first malformed line (wrong field count, blank
            line, non-numeric or non-positive number, empty or non-hex SHA,
            duplicate number)
    """
    refs: list[MergeRequestRef] = []
    seen: set[int] = set()

    for line_no, fields in enumerate(csv.reader(io.StringIO(text)), start=1):
        if len(fields) != 2:
            raise RefFileError(f"expected 2 fields, found {len(fields)}", line_no, source)

        raw_iid, head_sha = (field.strip() for field in fields)
        if not (raw_iid.isascii() and raw_iid.isdigit()):
            raise RefFileError(f"invalid merge request number {raw_iid!r}", line_no, source)
        iid = int(raw_iid)
        if iid <= 0:
            raise RefFileError(f"merge request number must be positive: {iid}", line_no, source)
        if not head_sha:
            raise RefFileError("empty head SHA", line_no, source)
        if not _HEX_RE.match(head_sha):
            raise RefFileError(f"head SHA is not hexadecimal: {head_sha!r}", line_no, source)
        if iid in seen:
            raise RefFileError(f"duplicate merge request number {iid}", line_no, source)

        seen.add(iid)
        refs.append(MergeRequestRef(iid=iid, head_sha=head_sha))

    return refs


def read_refs(path: str | Path) -> list[MergeRequestRef]:
    """Read references from a CSV file.

    Raises:
        FileNotFoundError: If the file does not exist
        RefFileError: If any line is malformed (the whole file is rejected)
    """
    source = Path(path)
    return decode_refs(source.read_text(encoding="utf-8"), source=str(source))
