"""The MARC record value and the routines which decode its directory.

A binary MARC record starts with a 24 byte leader. Bytes 0-4 of the leader
hold the total record length, and bytes 12-16 hold the offset of the end of
the directory. The directory follows the leader and is a list of 12 byte
entries, one per field:
    tag (3 bytes), field length (4 bytes), field offset (5 bytes)
Field offsets are relative to the end of the directory, and each field ends
with a field terminator.
"""

import logging
from marc_loader.errors import BadRecordError

logger = logging.getLogger()

HEADER_SIZE = 5
DIRECTORY_START = 24
DIRECTORY_ENTRY_SIZE = 12
UNKNOWN_END_OF_DIRECTORY = 99999

FIELD_TERMINATOR = 0x1E
RECORD_TERMINATOR = 0x1D


def parse_decimal(data: bytes) -> int | None:
    """Return the value of an ASCII decimal byte string,
    or None if it contains anything other than digits.
    """
    if not data or not data.isdigit():
        return None
    return int(data)


def find_end_of_directory(raw: bytes) -> int:
    """Return the offset of the end of the directory, which is one past
    the field terminator closing the directory.
    The leader value is used when it can be trusted; otherwise the
    first field terminator in the record marks the end.
    """
    end_of_dir = parse_decimal(raw[12:17])
    if end_of_dir is None:
        logger.error(
            f"MARC record end of directory offset invalid ({raw[12:17]!r})"
        )
        raise BadRecordError("invalid end of directory offset")

    # Make sure we are actually pointing where we expect.
    if (
        end_of_dir == UNKNOWN_END_OF_DIRECTORY
        or not 0 < end_of_dir <= len(raw)
        or raw[end_of_dir - 1] != FIELD_TERMINATOR
    ):
        found_idx = raw.find(bytes([FIELD_TERMINATOR]))
        if found_idx == -1:
            logger.error("Cannot locate end of directory marker")
            raise BadRecordError("no end of directory marker")
        found_idx += 1
        logger.info(
            f"Resetting directory terminator. Was {end_of_dir}, now {found_idx}"
        )
        end_of_dir = found_idx
    return end_of_dir


def lookup_field(raw: bytes, tag: str) -> slice | None:
    """Return the byte range of the first field with the given tag,
    excluding its field terminator, or None if there is no such field.
    """
    end_of_dir = find_end_of_directory(raw)
    wanted = tag.encode("ascii")

    # The last byte of the directory is its field terminator, not an entry.
    current_offset = DIRECTORY_START
    while current_offset + DIRECTORY_ENTRY_SIZE < end_of_dir:
        entry = raw[current_offset : current_offset + DIRECTORY_ENTRY_SIZE]
        field_length = parse_decimal(entry[3:7])
        if field_length is None:
            logger.error(f"MARC record field length invalid ({entry[3:7]!r})")
            raise BadRecordError("invalid field length in directory")
        field_offset = parse_decimal(entry[7:12])
        if field_offset is None:
            logger.error(f"MARC record field offset invalid ({entry[7:12]!r})")
            raise BadRecordError("invalid field offset in directory")

        if entry[0:3] == wanted:
            field_start = end_of_dir + field_offset
            return slice(field_start, field_start + field_length - 1)
        current_offset += DIRECTORY_ENTRY_SIZE

    return None


class Record:
    """One logical MARC record: the raw bytes of one or more framed records,
    the data source they came from, and the record identifier.
    """

    def __init__(self, raw: bytes, source: str = "unknown") -> None:
        self._raw = bytes(raw)
        self.source = source
        # Identifier will be set on first use.
        self._identifier = None

    @property
    def raw(self) -> bytes:
        return self._raw

    def __len__(self) -> int:
        return len(self._raw)

    def __repr__(self) -> str:
        return (
            f"Record(source={self.source!r}, length={len(self._raw)}, "
            f"identifier={self._identifier!r})"
        )

    def append(self, raw: bytes) -> None:
        """Add the bytes of a continuation record to this one.
        An identifier which has already been extracted is kept as is.
        """
        self._raw = self._raw + raw

    def identifier(self) -> str:
        """Return the record identifier: the 001 field, or the 035 field
        when there is no usable 001. Extracted once, then cached.
        """
        if self._identifier is None:
            self._identifier = self._extract_identifier()
        return self._identifier

    def get_field(self, tag: str) -> bytes | None:
        """Return the raw data of the first field with the given tag,
        without its field terminator.
        """
        field_range = lookup_field(self._raw, tag)
        if field_range is None:
            return None
        return self._raw[field_range]

    def _extract_identifier(self) -> str:
        for tag in ("001", "035"):
            try:
                data = self.get_field(tag)
            except BadRecordError:
                logger.warning(f"Could not decode field {tag}, trying the next one")
                continue
            if data is not None:
                return data.decode("utf-8", errors="replace")
            logger.debug(f"Could not locate field {tag} in MARC record")

        logger.error("Could not locate an identifier field in MARC record")
        raise BadRecordError("no 001 or 035 field in record")
