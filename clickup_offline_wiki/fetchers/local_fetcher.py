"""Reads ClickUp documents from JSON dumps of the pages endpoint."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models import DocumentNode
from .base_fetcher import BaseFetcher, FetcherError

logger = logging.getLogger('clickup_offline_wiki.fetcher.local')

DEFAULT_DATA_DIR = '.clickup-data'


class LocalFetcher(BaseFetcher):
    """
    Loads documents saved from the ClickUp API.

    Expects <data_dir>/<document_id>.json holding the pages response body and,
    optionally, <data_dir>/<document_id>.meta.json holding the document metadata.
    """

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None):
        """
        Initialize local fetcher.

        Args:
            config: Configuration dictionary with sync.data_dir
            logger: Logger instance (optional)
        """
        super().__init__(config, logger)
        self.data_dir = Path(config.get('sync', {}).get('data_dir') or DEFAULT_DATA_DIR)

        if not self.data_dir.is_dir():
            raise FetcherError(f"Data directory not found: {self.data_dir}")

    def fetch_document(
        self,
        workspace_id: str,
        document_id: str,
        max_page_depth: int = -1
    ) -> DocumentNode:
        """Load a document dump from the data directory."""
        pages_file = self.data_dir / f"{document_id}.json"
        if not pages_file.is_file():
            raise FetcherError(f"No data for document {document_id}: {pages_file} not found")

        payload = self._read_json(pages_file)

        document_name = None
        meta_file = self.data_dir / f"{document_id}.meta.json"
        if meta_file.is_file():
            meta = self._read_json(meta_file)
            if isinstance(meta, dict):
                document_name = meta.get('name')

        document = self._build_document(workspace_id, document_id, payload, document_name)

        if max_page_depth >= 0:
            self._prune(document, max_page_depth)
        return document

    def _read_json(self, path: Path) -> Any:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to read {path}: {e}")
            raise FetcherError(f"Failed to read {path}: {e}") from e

    @staticmethod
    def _prune(document: DocumentNode, max_page_depth: int) -> None:
        """Drop pages nested deeper than the API would return."""
        def prune(node, depth):
            if depth >= max_page_depth:
                node.children = []
                return
            for child in node.children:
                prune(child, depth + 1)

        top_level = document.children if document.synthetic else [document]
        for page in top_level:
            prune(page, 0)
