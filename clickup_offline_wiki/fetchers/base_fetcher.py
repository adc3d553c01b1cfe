"""Abstract base fetcher interface and common functionality."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from ..models import DocumentNode, PageNode

ROOT_DOCUMENT_NAME = 'Root'


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


class BaseFetcher(ABC):
    """Abstract base class for ClickUp document fetchers."""

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('clickup_offline_wiki.fetcher')

    @abstractmethod
    def fetch_document(
        self,
        workspace_id: str,
        document_id: str,
        max_page_depth: int = -1
    ) -> DocumentNode:
        """
        Fetch a document and its complete page tree.

        Args:
            workspace_id: ClickUp workspace id
            document_id: ClickUp document id
            max_page_depth: Maximum page nesting to fetch (-1 = unlimited)

        Returns:
            DocumentNode root of the page tree

        Raises:
            FetcherError: If the document cannot be fetched
        """
        pass

    def _build_document(
        self,
        workspace_id: str,
        document_id: str,
        payload: Union[List[Dict[str, Any]], Dict[str, Any]],
        document_name: Optional[str] = None
    ) -> DocumentNode:
        """
        Turn a pages payload into a DocumentNode.

        A list of pages is wrapped in a synthetic root named after the document;
        a single page object becomes a real root.

        Args:
            workspace_id: ClickUp workspace id
            document_id: ClickUp document id
            payload: Pages response body
            document_name: Document name from metadata

        Returns:
            DocumentNode

        Raises:
            FetcherError: If the payload has an unexpected shape
        """
        if isinstance(payload, dict) and isinstance(payload.get('pages'), list) and 'id' not in payload:
            payload = payload['pages']

        try:
            document = self._build_tree(workspace_id, document_id, payload, document_name)
        except (AttributeError, TypeError, KeyError) as e:
            raise FetcherError(f"Malformed page data in document {document_id}: {e}") from e

        self.logger.info(
            f"Fetched document '{document.name}' ({document_id}) with {document.count_pages()} pages"
        )
        return document

    @staticmethod
    def _build_tree(
        workspace_id: str,
        document_id: str,
        payload: Any,
        document_name: Optional[str]
    ) -> DocumentNode:
        if isinstance(payload, list):
            document = DocumentNode(
                id=document_id,
                name=document_name or ROOT_DOCUMENT_NAME,
                content='',
                document_id=document_id,
                workspace_id=workspace_id,
                synthetic=True
            )
            for page_data in payload:
                if not isinstance(page_data, dict):
                    raise FetcherError(f"Unexpected page entry in document {document_id}: {page_data!r}")
                document.children.append(PageNode.from_dict(page_data, parent_id=None))
        elif isinstance(payload, dict):
            root = PageNode.from_dict(payload)
            document = DocumentNode(
                id=root.id or document_id,
                name=root.name,
                content=root.content,
                children=root.children,
                document_id=str(payload.get('doc_id') or document_id),
                workspace_id=str(payload.get('workspace_id') or workspace_id),
                synthetic=False
            )
        else:
            raise FetcherError(
                f"Unexpected response for document {document_id}: {type(payload).__name__}"
            )

        return document
