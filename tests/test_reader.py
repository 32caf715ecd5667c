import unittest
from io import BytesIO
from unittest import mock

from marc_loader.errors import BadRecordError
from marc_loader.reader import RawRecordReader
from marc_samples import make_marc, with_length


class TestWellFormedRecords(unittest.TestCase):
    def setUp(self):
        self.first = make_marc("u1", title="First")
        self.second = make_marc("u2", title="Second")
        self.reader = RawRecordReader(BytesIO(self.first + self.second))

    def test_records_in_order(self):
        self.assertEqual(self.reader.read_raw_record(), self.first)
        self.assertEqual(self.reader.read_raw_record(), self.second)
        self.assertIsNone(self.reader.read_raw_record())

    def test_position_after_each_record(self):
        self.reader.read_raw_record()
        self.assertEqual(self.reader.tell(), len(self.first))
        self.reader.read_raw_record()
        self.assertEqual(self.reader.tell(), len(self.first) + len(self.second))

    def test_seek_rereads_record(self):
        self.reader.read_raw_record()
        self.reader.seek(0)
        self.assertEqual(self.reader.read_raw_record(), self.first)

    def test_empty_stream(self):
        reader = RawRecordReader(BytesIO(b""))
        self.assertIsNone(reader.read_raw_record())


class TestBadHeaders(unittest.TestCase):
    def test_header_not_numeric(self):
        reader = RawRecordReader(BytesIO(b"abcde" + make_marc("u1")[5:]))
        with self.assertRaises(BadRecordError):
            reader.read_raw_record()

    def test_header_with_spaces(self):
        reader = RawRecordReader(BytesIO(b" 0128" + make_marc("u1")[5:]))
        with self.assertRaises(BadRecordError):
            reader.read_raw_record()

    def test_header_too_small(self):
        reader = RawRecordReader(BytesIO(b"00005" + make_marc("u1")[5:]))
        with self.assertRaises(BadRecordError):
            reader.read_raw_record()

    def test_declared_length_past_end_of_file(self):
        raw = make_marc("u1")
        reader = RawRecordReader(BytesIO(with_length(raw, len(raw) + 100)))
        self.assertIsNone(reader.read_raw_record())

    def test_partial_header_at_end_of_file(self):
        raw = make_marc("u1")
        reader = RawRecordReader(BytesIO(raw + b"\n"))
        self.assertEqual(reader.read_raw_record(), raw)
        self.assertIsNone(reader.read_raw_record())


class TestTerminatorRecovery(unittest.TestCase):
    def test_terminator_earlier_than_declared(self):
        # Header claims 10 more bytes than the record has,
        # so the buffer runs into the next record.
        first = make_marc("u1", title="First")
        second = make_marc("u2", title="Second")
        bad_first = with_length(first, len(first) + 10)
        reader = RawRecordReader(BytesIO(bad_first + second))

        # Truncated just before the field and record terminators.
        self.assertEqual(reader.read_raw_record(), bad_first[:-2])
        # The stream is realigned on the next record.
        self.assertEqual(reader.tell(), len(first))
        self.assertEqual(reader.read_raw_record(), second)
        self.assertIsNone(reader.read_raw_record())

    def test_terminator_later_than_declared(self):
        # Header claims 10 fewer bytes than the record has.
        first = make_marc("u1", title="First")
        second = make_marc("u2", title="Second")
        bad_first = with_length(first, len(first) - 10)
        reader = RawRecordReader(BytesIO(bad_first + second))

        self.assertEqual(reader.read_raw_record(), bad_first)
        self.assertEqual(reader.tell(), len(first))
        self.assertEqual(reader.read_raw_record(), second)

    def test_terminator_later_across_chunks(self):
        first = make_marc("u1", title="A" * 5000)
        bad_first = with_length(first, 100)
        stream = BytesIO(bad_first + make_marc("u2"))
        reader = RawRecordReader(stream)
        with mock.patch("marc_loader.reader.SCAN_CHUNK_SIZE", 64):
            self.assertEqual(reader.read_raw_record(), bad_first)
        self.assertEqual(reader.tell(), len(first))

    def test_terminator_never_found(self):
        raw = make_marc("u1")
        # Drop the record terminator, and claim fewer bytes than there are.
        bad = with_length(raw[:-1], len(raw) - 10)
        reader = RawRecordReader(BytesIO(bad))
        with self.assertRaises(BadRecordError):
            reader.read_raw_record()
