import logging
import os
import tempfile
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from marc_loader.errors import BadNameError, FetchError

logger = logging.getLogger()

S3_PREFIX = "s3://"


def is_s3_name(name: str) -> bool:
    return name.startswith(S3_PREFIX)


def split_s3_name(s3_name: str) -> tuple[str, str]:
    """Split s3://bucket/path/to/key into bucket and key."""
    name = s3_name.replace(S3_PREFIX, "", 1)
    bucket, _, key = name.partition("/")
    if not bucket or not key:
        raise BadNameError(f"bad file name: {s3_name}")
    return bucket, key


class S3Downloader:
    """Provide a wrapper around the boto3 S3 client, to copy a remote
    file of MARC records to local disk before it is read.
    """

    def __init__(self, region: str | None = None, endpoint_url: str | None = None) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        # Client will be set on first use.
        self._client = None

    @property
    def client(self):
        """Return configured S3 client ready for use, on demand."""
        if self._client is None:
            client_kwargs = {
                "service_name": "s3",
                "config": Config(signature_version="s3v4"),
            }
            if self._region:
                client_kwargs["region_name"] = self._region
            if self._endpoint_url:
                client_kwargs["endpoint_url"] = self._endpoint_url
            self._client = boto3.client(**client_kwargs)
        return self._client

    def download(self, s3_name: str, download_dir: str) -> str:
        """Download the named object into a new temporary file in
        download_dir. Returns the name of the local file, which the caller
        is responsible for removing.
        """
        bucket, key = split_s3_name(s3_name)
        fd, local_name = tempfile.mkstemp(dir=download_dir)
        os.close(fd)

        logger.info(f"Downloading {s3_name} to {local_name}")
        try:
            self.client.download_file(bucket, key, local_name)
        except (BotoCoreError, ClientError) as e:
            os.remove(local_name)
            raise FetchError(f"cannot download {s3_name}: {e}") from e
        except Exception:
            # Don't leave a partial download behind.
            os.remove(local_name)
            raise
        logger.info(
            f"Download of {s3_name} complete ({os.path.getsize(local_name)} bytes)"
        )
        return local_name
