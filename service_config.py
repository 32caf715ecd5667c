import argparse
import tempfile
from fetchers.s3 import is_s3_name


class ServiceConfig:
    """Settings for one run over one file of MARC records."""

    def __init__(
        self,
        in_file_name: str,
        download_dir: str | None = None,
        log_level: str = "INFO",
        log_file: str | None = None,
    ) -> None:
        self.in_file_name = in_file_name
        self.download_dir = download_dir or tempfile.gettempdir()
        self.log_level = log_level
        self.log_file = log_file

    @property
    def must_download(self) -> bool:
        """Remote files must be copied locally before they can be read."""
        return is_s3_name(self.in_file_name)


def get_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "infile", help="Path to a file of MARC records, local or s3://bucket/key"
    )
    parser.add_argument(
        "--download-dir",
        help="Directory for the local copy of a remote file (default: system temp)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level",
    )
    parser.add_argument(
        "--log-file", help="Write log messages to this file instead of stderr"
    )
    return parser


def load_configuration(
    argv: list[str] | None = None, description: str | None = None
) -> ServiceConfig:
    """Build the configuration from command-line arguments.
    Invalid arguments exit via argparse.
    """
    parser = get_parser(description)
    args = parser.parse_args(argv)
    if not args.infile.strip():
        parser.error("infile cannot be blank")
    return ServiceConfig(
        in_file_name=args.infile,
        download_dir=args.download_dir,
        log_level=args.log_level,
        log_file=args.log_file,
    )
