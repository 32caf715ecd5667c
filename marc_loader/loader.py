import logging
from typing import BinaryIO, Iterator
from marc_loader.continuation import merge_continuations
from marc_loader.errors import BadRecordError, FileNotOpenError
from marc_loader.reader import RawRecordReader
from marc_loader.record import Record

logger = logging.getLogger()


def get_data_source(name: str) -> str:
    """Identify the data source from a file name.
    By convention files are named dir-name/source-name/year/file,
    so when a name splits into exactly 4 parts the second is the source.
    Otherwise the source is "unknown".
    """
    source = "unknown"
    tokens = name.split("/")
    if len(tokens) == 4:
        source = tokens[1]
    logger.info(f"Data source identified is: {source}")
    return source


class RecordLoader:
    """Read MARC records in order from a binary stream.

    The loader owns the stream and closes it in done(). Use it as a
    context manager, or call done() explicitly.
    """

    def __init__(self, stream: BinaryIO, source: str = "unknown") -> None:
        self._stream = stream
        self._reader = RawRecordReader(stream)
        self.source = source

    @classmethod
    def open(cls, remote_name: str, local_name: str) -> "RecordLoader":
        """Open a local file of MARC records. The data source is taken
        from remote_name, the name the file was originally known by.
        """
        stream = open(local_name, "rb")
        return cls(stream, source=get_data_source(remote_name))

    def __enter__(self) -> "RecordLoader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.done()

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def _check_open(self) -> None:
        if self._stream is None:
            raise FileNotOpenError("file is not open")

    def first(self, read_ahead: bool) -> Record | None:
        """Return the first record in the file, or None if it is empty."""
        self._check_open()
        self._stream.seek(0)
        return self.next(read_ahead)

    def next(self, read_ahead: bool) -> Record | None:
        """Return the next record, or None at the end of the file.
        With read_ahead, following records which share this record's
        identifier are appended to it.
        """
        self._check_open()
        raw = self._reader.read_raw_record()
        if raw is None:
            return None

        record = Record(raw, source=self.source)
        # Identify now, so a record without an identifier fails here.
        record.identifier()
        if read_ahead:
            record = merge_continuations(record, self._reader)
        return record

    def records(self, read_ahead: bool = True) -> Iterator[Record]:
        """Yield every record in the file, starting from the beginning."""
        record = self.first(read_ahead)
        while record is not None:
            yield record
            record = self.next(read_ahead)

    def validate(self) -> int:
        """Read every record to make sure the file is structurally valid.
        Returns the number of records read; an empty file is valid.
        Raises the error for the first bad record found.
        """
        self._check_open()
        record_index = 0
        try:
            record = self.first(read_ahead=False)
            if record is None:
                logger.warning("EOF on first read, looks like an empty file")
            while record is not None:
                record_index += 1
                record = self.next(read_ahead=False)
        except (BadRecordError, OSError):
            logger.error(f"Validation failure on record index {record_index}")
            raise
        return record_index

    def done(self) -> None:
        """Close the file. Safe to call more than once."""
        if self._stream is not None:
            self._stream.close()
            self._stream = None
