"""
Upload server API client.
Handles the HTTP calls used by the reference uploader.
"""

import time
import requests
from typing import Dict, Any, List, Optional

from .logger import get_logger

logger = get_logger(__name__)

USER_AGENT = 'WatchFolder-Agent/1.0'


class UploadAPIClient:
    """Client for the upload server's session API."""

    def __init__(
        self,
        server: str,
        timeout: int = 300,
        verify_ssl: bool = True
    ):
        """Initialize API client.

        Args:
            server: Base server URL
            timeout: Request timeout in seconds
            verify_ssl: Verify SSL certificates (disable for self-signed servers)
        """
        self.server = server.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session = requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

        if not verify_ssl:
            logger.warning(f"SSL verification disabled for {self.server}")

    @staticmethod
    def auth_headers(user_id: str, user_key: str) -> Dict[str, str]:
        """Build per-request authentication headers."""
        return {
            'X-User-ID': user_id,
            'Authorization': f'Bearer {user_key}'
        }

    def _make_request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Make HTTP request to API.

        Args:
            method: HTTP method (GET, POST, PUT, etc.)
            endpoint: API endpoint path
            json_data: Optional JSON data
            data: Optional raw bytes data
            headers: Optional additional headers

        Returns:
            Response JSON

        Raises:
            requests.RequestException: On network/API errors
        """
        url = f"{self.server}{endpoint}"

        try:
            logger.debug(f"{method} {url}")

            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                data=data,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl
            )

            response.raise_for_status()

            if response.content:
                return response.json()
            return {}

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout: {url}")
            raise

        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error {e.response.status_code}: {url}")
            logger.debug(f"Response: {e.response.text}")
            raise

        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {url} - {e}")
            raise

    # ========================================
    # Upload sessions
    # ========================================

    def create_session(
        self,
        folder_id: str,
        name: str,
        size_bytes: int,
        part_size_bytes: int,
        headers: Dict[str, str]
    ) -> Dict[str, Any]:
        """Open an upload session.

        POST /api/v1/uploads

        Returns:
            Response dict with upload_id
        """
        logger.info(f"Creating upload session: {name} ({size_bytes} bytes)")

        return self._make_request(
            method='POST',
            endpoint='/api/v1/uploads',
            json_data={
                'folder_id': folder_id,
                'name': name,
                'size_bytes': size_bytes,
                'part_size_bytes': part_size_bytes
            },
            headers=headers
        )

    def upload_part(
        self,
        upload_id: str,
        part_index: int,
        part_data: bytes,
        headers: Dict[str, str]
    ) -> Dict[str, Any]:
        """Send one part of the file.

        PUT /api/v1/uploads/<upload_id>/parts/<part_index>
        """
        logger.debug(f"Uploading part {part_index} for upload {upload_id} ({len(part_data)} bytes)")

        part_headers = dict(headers)
        part_headers['Content-Type'] = 'application/octet-stream'

        return self._make_request(
            method='PUT',
            endpoint=f'/api/v1/uploads/{upload_id}/parts/{part_index}',
            data=part_data,
            headers=part_headers
        )

    def complete_session(
        self,
        upload_id: str,
        total_parts: int,
        headers: Dict[str, str]
    ) -> Dict[str, Any]:
        """Close an upload session; the server commits the file.

        POST /api/v1/uploads/<upload_id>/complete
        """
        return self._make_request(
            method='POST',
            endpoint=f'/api/v1/uploads/{upload_id}/complete',
            json_data={'total_parts': total_parts},
            headers=headers
        )

    def ping(self) -> bool:
        """Ping API to check connectivity.

        Returns:
            True if API is reachable
        """
        try:
            response = self._make_request(method='GET', endpoint='/api/v1/health')
            return response.get('status') == 'ok'
        except Exception as e:
            logger.warning(f"API ping failed: {e}")
            return False

    def close(self) -> None:
        """Close HTTP session."""
        self.session.close()


class RetryableUploadAPIClient(UploadAPIClient):
    """API client with automatic retry of part uploads.

    Only part uploads are retried; session create and complete are sent once.
    """

    def __init__(
        self,
        server: str,
        timeout: int = 300,
        verify_ssl: bool = True,
        max_retries: int = 3,
        retry_delays: Optional[List[int]] = None
    ):
        """Initialize retryable API client.

        Args:
            server: Base server URL
            timeout: Request timeout
            verify_ssl: Verify SSL
            max_retries: Maximum attempts per part upload
            retry_delays: List of retry delays in seconds
        """
        super().__init__(server, timeout, verify_ssl)

        self.max_retries = max(1, max_retries)
        self.retry_delays = retry_delays or [5, 10, 30]

    def _make_request_with_retry(self, *args, **kwargs) -> Dict[str, Any]:
        """Make request with retry logic.

        Raises:
            requests.RequestException: After all retries exhausted
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                return self._make_request(*args, **kwargs)

            except requests.exceptions.RequestException as e:
                last_error = e

                if attempt < self.max_retries - 1:
                    delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    time.sleep(delay)
                else:
                    logger.error(f"Request failed after {self.max_retries} attempts: {e}")

        raise last_error

    def upload_part(
        self,
        upload_id: str,
        part_index: int,
        part_data: bytes,
        headers: Dict[str, str]
    ) -> Dict[str, Any]:
        """Upload part with retry."""
        part_headers = dict(headers)
        part_headers['Content-Type'] = 'application/octet-stream'

        return self._make_request_with_retry(
            method='PUT',
            endpoint=f'/api/v1/uploads/{upload_id}/parts/{part_index}',
            data=part_data,
            headers=part_headers
        )
