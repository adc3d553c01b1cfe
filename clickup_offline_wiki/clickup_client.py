"""ClickUp v3 REST API client for documents and pages, with retry logic."""

import json
import logging
import time
from typing import Any, Dict, List, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('clickup_offline_wiki.client')

DEFAULT_API_BASE_URL = 'https://api.clickup.com/api/v3'
MARKDOWN_CONTENT_FORMAT = 'text/md'


class ClickUpAPIError(Exception):
    """Raised when the ClickUp API answers with an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClickUpClient:
    """ClickUp REST API client with token authentication, retry logic and error handling."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the ClickUp client.

        Args:
            api_key: Personal API token, sent as the Authorization header
            base_url: API base URL (e.g., "https://api.clickup.com/api/v3")
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor
            session: Optional preconfigured session
        """
        if not api_key:
            raise ValueError("ClickUp API key is required")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': api_key,
            'Accept': 'application/json'
        })

        # Retry idempotent requests on rate limiting and server errors
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured for {self.base_url} with timeout={timeout}s, "
                     f"max_retries={max_retries}, backoff_factor={retry_backoff_factor}")

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Args:
            endpoint: Path below the base URL (e.g., "/workspaces/1/docs/abc")
            params: Query parameters

        Returns:
            Decoded JSON response

        Raises:
            ClickUpAPIError: For HTTP errors, timeouts and connection failures
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start_time = time.time()
        logger.debug(f"API Request: GET {url} params={params}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            elapsed = time.time() - start_time
            logger.debug(f"API Response: {response.status_code} {url} ({elapsed:.3f}s)")
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: GET {url}")
            raise ClickUpAPIError(f"ClickUp API error: request to {url} timed out")

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            message = self._extract_error_message(e.response) or str(e)
            logger.error(f"HTTP Error {status_code}: GET {url}")
            raise ClickUpAPIError(f"ClickUp API error: {status_code} - {message}", status_code) from e

        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: GET {url} - {e}")
            raise ClickUpAPIError(f"ClickUp API error: {e}") from e

        except ValueError as e:
            logger.error(f"Invalid JSON in response from {url}")
            raise ClickUpAPIError(f"ClickUp API error: invalid JSON response from {url}") from e

    @staticmethod
    def _extract_error_message(response: Optional[requests.Response]) -> Optional[str]:
        if response is None:
            return None
        try:
            error_data = response.json()
        except ValueError:
            return response.text[:500] or None

        if isinstance(error_data, dict):
            for key in ('err', 'error', 'message'):
                if error_data.get(key):
                    return str(error_data[key])
        return json.dumps(error_data)[:500]

    def get_document_pages(
        self,
        workspace_id: str,
        document_id: str,
        max_page_depth: int = -1
    ) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Fetch the page tree of a document with markdown content.

        Args:
            workspace_id: ClickUp workspace id
            document_id: ClickUp document id
            max_page_depth: Maximum page nesting to return (-1 = unlimited)

        Returns:
            List of top-level page objects (children nested under "pages"),
            or a single root page object
        """
        logger.info(f"Fetching pages of document {document_id} in workspace {workspace_id}")
        return self._get(
            f"/workspaces/{workspace_id}/docs/{document_id}/pages",
            params={'max_page_depth': max_page_depth, 'content_format': MARKDOWN_CONTENT_FORMAT}
        )

    def get_document_meta(self, workspace_id: str, document_id: str) -> Dict[str, Any]:
        """
        Fetch document metadata (name, creator, dates).

        Args:
            workspace_id: ClickUp workspace id
            document_id: ClickUp document id

        Returns:
            Document metadata dictionary
        """
        return self._get(f"/workspaces/{workspace_id}/docs/{document_id}")

    def get_page(self, workspace_id: str, document_id: str, page_id: str) -> Dict[str, Any]:
        """
        Fetch a single page with markdown content.

        Args:
            workspace_id: ClickUp workspace id
            document_id: ClickUp document id
            page_id: ClickUp page id

        Returns:
            Page object
        """
        return self._get(
            f"/workspaces/{workspace_id}/docs/{document_id}/pages/{page_id}",
            params={'content_format': MARKDOWN_CONTENT_FORMAT}
        )

    def close(self) -> None:
        self.session.close()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ClickUpClient':
        """
        Initialize ClickUp client from configuration dictionary.

        Args:
            config: Configuration dictionary with clickup and advanced settings

        Returns:
            ClickUpClient instance
        """
        clickup_config = config.get('clickup', {})
        advanced_config = config.get('advanced', {})

        return cls(
            api_key=clickup_config.get('api_key'),
            base_url=clickup_config.get('api_base_url', DEFAULT_API_BASE_URL),
            timeout=advanced_config.get('request_timeout', 30),
            max_retries=advanced_config.get('max_retries', 3),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', 2.0)
        )


__all__ = ['ClickUpClient', 'ClickUpAPIError', 'DEFAULT_API_BASE_URL']
