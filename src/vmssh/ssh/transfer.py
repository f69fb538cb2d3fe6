"""File upload over SFTP."""

import io
import logging
from pathlib import Path
from typing import BinaryIO

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from vmssh.ssh.connection import ConnectionManager
from vmssh.ssh.session import Session

logger = logging.getLogger(__name__)

UPLOAD_MAX_TRIES = 5

UploadSource = str | Path | bytes | BinaryIO


class _TransferFailed(Exception):
    """I/O error raised while sending a file over an open connection."""

    def __init__(self, error: OSError) -> None:
        super().__init__(str(error))
        self.error = error


class FileTransferer:
    """Uploads files to a VM.

    Every attempt opens a fresh connection and sends the whole payload.
    Transfers failing with an I/O error once connected are retried up to
    ``UPLOAD_MAX_TRIES`` times. Failures while connecting are left to the
    connection manager and are never retried here.
    """

    def __init__(self, connections: ConnectionManager) -> None:
        """Initialize file transferer.

        Args:
            connections: Connection manager used for each attempt.
        """
        self._connections = connections

    def upload(self, source: UploadSource, destination: str) -> None:
        """Upload a local file or in-memory buffer to the VM.

        Args:
            source: Local file path, bytes, or a binary file object.
            destination: Absolute path on the VM.

        Raises:
            OSError: If every transfer attempt failed with an I/O error.
        """
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(UPLOAD_MAX_TRIES),
                retry=retry_if_exception_type(_TransferFailed),
                reraise=True,
            ):
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        logger.debug(
                            f"Retrying upload to {destination} "
                            f"(attempt {number}/{UPLOAD_MAX_TRIES})"
                        )
                    self._connections.open(
                        lambda session: self._transfer(session, source, destination)
                    )
        except _TransferFailed as e:
            raise e.error from None

    def _transfer(self, session: Session, source: UploadSource, destination: str) -> None:
        logger.info(f"Uploading {_describe(source)} -> {destination}")
        try:
            self._send(session, source, destination)
        except ConnectionRefusedError:
            raise
        except OSError as e:
            raise _TransferFailed(e) from e

    def _send(self, session: Session, source: UploadSource, destination: str) -> None:
        sftp = session.client.open_sftp()
        try:
            if isinstance(source, (str, Path)):
                sftp.put(str(source), destination)
            else:
                sftp.putfo(_rewound(source), destination)
        finally:
            sftp.close()


def _rewound(source: bytes | BinaryIO) -> BinaryIO:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    source.seek(0)
    return source


def _describe(source: UploadSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return "<buffer>"
