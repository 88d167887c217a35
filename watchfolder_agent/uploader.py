"""
Uploader collaborator for Watch Folder Agent.

The sync engine only depends on the ``Uploader`` protocol: a synchronous
``upload`` call that returns on success and raises on failure. ``HTTPUploader``
is the reference implementation that sends a file in fixed-size parts.
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

import requests

from .api_client import RetryableUploadAPIClient, UploadAPIClient
from .exceptions import UploadError
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_PART_SIZE = 1048576


@dataclass(frozen=True)
class UploadCredentials:
    """Identity used for every upload."""
    user_id: str
    user_key: str
    folder_id: str

    def __repr__(self) -> str:
        return f"UploadCredentials(user_id={self.user_id!r}, folder_id={self.folder_id!r})"


class Uploader(Protocol):
    """Anything that can durably upload one local file."""

    def upload(
        self,
        user_id: str,
        user_key: str,
        folder_id: str,
        display_name: str,
        local_path: Union[str, Path],
        part_size_bytes: int
    ) -> None:
        ...


class HTTPUploader:
    """Uploads files through the server's session API."""

    def __init__(self, api: Optional[UploadAPIClient] = None, server: Optional[str] = None, **client_kwargs):
        """Initialize uploader.

        Args:
            api: API client to use
            server: Server URL, used to build a RetryableUploadAPIClient when api is None
            **client_kwargs: Passed to RetryableUploadAPIClient
        """
        if api is None:
            if not server:
                raise ValueError("Either api or server is required")
            api = RetryableUploadAPIClient(server, **client_kwargs)
        self.api = api

    def upload(
        self,
        user_id: str,
        user_key: str,
        folder_id: str,
        display_name: str,
        local_path: Union[str, Path],
        part_size_bytes: int = DEFAULT_PART_SIZE
    ) -> None:
        """Upload a file; returns once the server has committed it.

        Raises:
            UploadError: On any transport, server or local read failure
        """
        local_path = Path(local_path)
        headers = self.api.auth_headers(user_id, user_key)

        try:
            size_bytes = local_path.stat().st_size
            total_parts = max(1, math.ceil(size_bytes / part_size_bytes))

            session = self.api.create_session(
                folder_id=folder_id,
                name=display_name,
                size_bytes=size_bytes,
                part_size_bytes=part_size_bytes,
                headers=headers
            )
            upload_id = session.get('upload_id')
            if not upload_id:
                raise UploadError("Server did not return an upload_id", file_path=str(local_path))

            with open(local_path, 'rb') as f:
                for part_index in range(total_parts):
                    part_data = f.read(part_size_bytes)
                    self.api.upload_part(upload_id, part_index, part_data, headers)

            self.api.complete_session(upload_id, total_parts, headers)

        except requests.exceptions.HTTPError as e:
            raise UploadError(
                f"Server rejected upload ({e.response.status_code})",
                file_path=str(local_path),
                detail=e.response.text
            ) from e

        except requests.exceptions.RequestException as e:
            raise UploadError(f"Network error: {e}", file_path=str(local_path)) from e

        except OSError as e:
            raise UploadError(f"Cannot read file: {e}", file_path=str(local_path)) from e

        logger.info(f"Uploaded {display_name} ({size_bytes} bytes in {total_parts} part(s))")

    def check_server(self) -> bool:
        """Report whether the upload server answers its health check."""
        return self.api.ping()

    def close(self) -> None:
        self.api.close()
