class MarcLoaderError(Exception):
    """Base class for errors raised while loading MARC records."""


class BadRecordError(MarcLoaderError):
    """A record's framing, directory or identifier could not be decoded."""


class FileNotOpenError(MarcLoaderError):
    """An operation was attempted on a loader whose file is not open."""


class BadNameError(MarcLoaderError):
    """A remote file name could not be split into bucket and key."""


class FetchError(MarcLoaderError):
    """A remote file could not be copied to local disk."""
