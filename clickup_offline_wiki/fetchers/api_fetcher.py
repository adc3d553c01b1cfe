"""Fetches ClickUp documents through the v3 REST API."""

import logging
from typing import Any, Dict, Optional

from ..clickup_client import ClickUpAPIError, ClickUpClient
from ..models import DocumentNode
from .base_fetcher import BaseFetcher, FetcherError

logger = logging.getLogger('clickup_offline_wiki.fetcher.api')

UNKNOWN_DOCUMENT_NAME = 'Unknown Document'


class ApiFetcher(BaseFetcher):
    """Fetches document trees with markdown content from the ClickUp API."""

    def __init__(
        self,
        config: Dict[str, Any],
        logger: Optional[logging.Logger] = None,
        client: Optional[ClickUpClient] = None
    ):
        """
        Initialize API fetcher with configuration.

        Args:
            config: Configuration dictionary with clickup and advanced settings
            logger: Logger instance (optional)
            client: Preconfigured client (built from config when omitted)
        """
        super().__init__(config, logger)
        self.client = client or ClickUpClient.from_config(config)

    def fetch_document(
        self,
        workspace_id: str,
        document_id: str,
        max_page_depth: int = -1
    ) -> DocumentNode:
        """Fetch a document's metadata and page tree."""
        document_name = self._fetch_document_name(workspace_id, document_id)

        try:
            payload = self.client.get_document_pages(workspace_id, document_id, max_page_depth)
        except ClickUpAPIError as e:
            self.logger.error(f"Failed to fetch pages of document {document_id}: {e}")
            raise FetcherError(str(e)) from e

        return self._build_document(workspace_id, document_id, payload, document_name)

    def _fetch_document_name(self, workspace_id: str, document_id: str) -> str:
        """Look up the document name, falling back to a placeholder."""
        try:
            meta = self.client.get_document_meta(workspace_id, document_id)
        except ClickUpAPIError as e:
            self.logger.warning(f"Failed to fetch metadata of document {document_id}: {e}")
            return UNKNOWN_DOCUMENT_NAME

        name = meta.get('name') if isinstance(meta, dict) else None
        return name or UNKNOWN_DOCUMENT_NAME
