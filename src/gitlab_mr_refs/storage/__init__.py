"""Reference file storage."""

from .csv_refs import (
    CsvRefSink,
    RefFileError,
    decode_refs,
    encode_refs,
    read_refs,
    write_refs,
)

__all__ = [
    "CsvRefSink",
    "RefFileError",
    "decode_refs",
    "encode_refs",
    "read_refs",
    "write_refs",
]
