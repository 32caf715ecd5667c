import logging
import sys
from marc_loader.errors import MarcLoaderError
from marc_loader.loader import RecordLoader
from marcid_list import configure_logging, local_copy
from service_config import load_configuration

logger = logging.getLogger()


def main(argv: list[str] | None = None) -> None:
    config = load_configuration(
        argv, description="Check the framing of every record in a MARC file"
    )
    configure_logging(config)
    try:
        with local_copy(config) as local_name:
            record_count = get_valid_record_count(config.in_file_name, local_name)
    except (MarcLoaderError, OSError) as e:
        logger.critical(f"{config.in_file_name} is not valid: {e}")
        sys.exit(1)
    print(f"{config.in_file_name} is valid: {record_count} records.")


def get_valid_record_count(remote_name: str, local_name: str) -> int:
    """Returns the number of records in a binary MARC file,
    raising an error at the first record which cannot be read.
    """
    with RecordLoader.open(remote_name, local_name) as loader:
        return loader.validate()


if __name__ == "__main__":
    main()
