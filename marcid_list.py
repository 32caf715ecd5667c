import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator, TextIO
from fetchers.s3 import S3Downloader
from marc_loader.errors import MarcLoaderError
from marc_loader.loader import RecordLoader
from service_config import ServiceConfig, load_configuration

logger = logging.getLogger()


def main(argv: list[str] | None = None) -> None:
    config = load_configuration(
        argv, description="Print the identifier of each record in a MARC file"
    )
    configure_logging(config)
    try:
        with local_copy(config) as local_name:
            with RecordLoader.open(config.in_file_name, local_name) as loader:
                print_identifiers(loader)
    except (MarcLoaderError, OSError) as e:
        logger.critical(f"{config.in_file_name}: {e}")
        sys.exit(1)


def configure_logging(config: ServiceConfig) -> None:
    """Log to stderr, or the configured file, so stdout only has results."""
    logging.basicConfig(filename=config.log_file, level=config.log_level)
    # Suppress 3rd-party logs with lower level than WARNING
    for name in ("boto3", "botocore", "s3transfer", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def local_copy(
    config: ServiceConfig, downloader: S3Downloader | None = None
) -> Iterator[str]:
    """Provide the name of a local file with the input data,
    downloading it first if it is remote. Downloaded files are removed
    when the block exits.
    """
    if not config.must_download:
        yield config.in_file_name
        return

    if downloader is None:
        downloader = S3Downloader()
    local_name = downloader.download(config.in_file_name, config.download_dir)
    try:
        yield local_name
    finally:
        os.remove(local_name)


def print_identifiers(loader: RecordLoader, out: TextIO | None = None) -> int:
    """Print the identifier of each logical record, one per line.
    Continuation records are merged, so each identifier appears once
    per run of records. Returns the number printed.
    """
    out = out or sys.stdout
    count = 0
    for record in loader.records(read_ahead=True):
        print(record.identifier(), file=out)
        count += 1
    logger.info(f"Listed {count} record identifiers")
    return count


if __name__ == "__main__":
    main()
