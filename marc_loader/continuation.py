"""Folding of continuation records.

Some sources split a very large catalog record into several consecutive
framed records which all carry the same identifier. These are joined back
into one logical record.
"""

import logging
from typing import Protocol
from marc_loader.errors import BadRecordError
from marc_loader.record import Record

logger = logging.getLogger()


class RawReader(Protocol):
    """What the merge needs from a reader: a position which can be saved
    and restored, and the next framed record.
    """

    def tell(self) -> int: ...

    def seek(self, position: int) -> None: ...

    def read_raw_record(self) -> bytes | None: ...


def merge_continuations(record: Record, reader: RawReader) -> Record:
    """Append to the record every following raw record with the same
    identifier. When this returns, the reader is positioned at the first
    record which was not merged.
    """
    identifier = record.identifier()
    while True:
        rewind_point = reader.tell()

        try:
            next_raw = reader.read_raw_record()
        except BadRecordError:
            next_raw = None
        if next_raw is None:
            reader.seek(rewind_point)
            return record

        # Only compare identifiers; the record itself is discarded.
        try:
            next_identifier = Record(next_raw).identifier()
        except BadRecordError:
            reader.seek(rewind_point)
            return record

        if next_identifier != identifier:
            reader.seek(rewind_point)
            return record

        logger.info(
            f"Identified additional MARC record for {identifier}, appending it"
        )
        record.append(next_raw)
