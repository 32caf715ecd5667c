import logging
from typing import BinaryIO
from marc_loader.errors import BadRecordError
from marc_loader.record import (
    FIELD_TERMINATOR,
    HEADER_SIZE,
    RECORD_TERMINATOR,
    parse_decimal,
)

logger = logging.getLogger()

END_OF_RECORD = bytes([FIELD_TERMINATOR, RECORD_TERMINATOR])
# Size of the reads used when scanning forward for a record terminator.
SCAN_CHUNK_SIZE = 128 * 1024


class RawRecordReader:
    """Split a binary stream into framed MARC records.

    Each record starts with a 5 byte ASCII length header and ends with a
    field terminator followed by a record terminator. Some aggregated files
    misreport the length of very large records, so when the terminators are
    not where the header says, the reader looks for them earlier in the bytes
    already read, then later in the stream.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, position: int) -> None:
        self._stream.seek(position)

    def read_raw_record(self) -> bytes | None:
        """Return the bytes of the next framed record, or None at the
        end of the stream. Raises BadRecordError if the framing is bad
        and cannot be recovered.
        """
        start = self._stream.tell()
        header = self._stream.read(HEADER_SIZE)
        if not header:
            return None
        if len(header) < HEADER_SIZE:
            logger.warning(
                f"Short header read. Expected {HEADER_SIZE}, got {len(header)}. "
                "Declaring EOF"
            )
            return None

        length = parse_decimal(header)
        if length is None or length <= HEADER_SIZE:
            logger.error(f"MARC record prefix invalid ({header!r})")
            raise BadRecordError(f"invalid record length header {header!r}")

        # The header is part of the raw record, so read it again.
        self._stream.seek(-HEADER_SIZE, 1)
        buffer = self._stream.read(length)

        # A short read at the end of the file is how the file ends.
        if len(buffer) != length:
            logger.warning(
                f"Short record read. Expected {length}, got {len(buffer)}. "
                "Declaring EOF"
            )
            return None

        if buffer.endswith(END_OF_RECORD):
            return buffer

        logger.warning(
            "Unexpected MARC record suffix. "
            f"Expected {END_OF_RECORD.hex(' ')}, got {buffer[-2:].hex(' ')}. "
            f"Header length reports {length}"
        )
        recovered = self._recover_earlier(buffer, start)
        if recovered is None:
            recovered = self._recover_later(buffer)
        return recovered

    def _recover_earlier(self, buffer: bytes, start: int) -> bytes | None:
        """Look for the end of record in the bytes already read.
        If found, the record is truncated there and the stream is moved
        to just after the terminators.
        """
        found_idx = buffer.find(END_OF_RECORD)
        if found_idx == -1:
            return None
        logger.warning(
            f"Located record terminator earlier in the buffer at offset {found_idx}"
        )
        self._stream.seek(start + found_idx + len(END_OF_RECORD))
        return buffer[:found_idx]

    def _recover_later(self, buffer: bytes) -> bytes:
        """Read forward from the current position until a record terminator,
        for records too large for their 5 digit length header.
        """
        additional = bytearray()
        while True:
            chunk = self._stream.read(SCAN_CHUNK_SIZE)
            if not chunk:
                logger.error(
                    "Reached end of file reading forward for record terminator, "
                    "giving up"
                )
                raise BadRecordError("record terminator not found")

            found_idx = chunk.find(RECORD_TERMINATOR)
            if found_idx == -1:
                additional.extend(chunk)
                continue

            additional.extend(chunk[: found_idx + 1])
            # Leave the stream on the byte after the terminator.
            self._stream.seek(found_idx + 1 - len(chunk), 1)
            logger.warning(
                f"Record terminator located after an additional {len(additional)} bytes"
            )
            return buffer + bytes(additional)
