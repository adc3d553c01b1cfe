"""Writes a ClickUp document tree to disk as folders of markdown files."""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Set, Union

from ..catalog import PageCatalog
from ..converters.link_patterns import DEFAULT_APP_HOST, LinkPatternMatcher
from ..models import CatalogEntry, DocumentNode, MaterializeResult, PageNode

logger = logging.getLogger('clickup_offline_wiki.exporters.tree_materializer')

MAX_NAME_LENGTH = 100
UNTITLED_NAME = 'Untitled'


class MaterializationError(Exception):
    """Base exception for errors while writing a document tree."""
    pass


class InvalidNodeNameError(MaterializationError):
    """A node in the tree has no usable name."""
    pass


class TreeMaterializer:
    """
    Materializes document trees under an output root.

    Layout:
    - A page without children becomes <parent>/<name>.md
    - A page with children becomes the directory <parent>/<name>/, holding
      <name>.md when the page has non-blank content of its own
    - A synthetic document root becomes <output>/<document name>/ and only
      hosts its top-level pages
    - A real document root also gets <output>/<document name>/, holding
      <name>.md next to the pages below it

    Every written file is recorded in the catalog.
    """

    def __init__(
        self,
        output_root: Union[str, Path],
        app_host: str = DEFAULT_APP_HOST,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the materializer.

        Args:
            output_root: Directory receiving one folder per document
            app_host: ClickUp web app host used for canonical page URLs
            logger: Logger instance
        """
        self.output_root = Path(os.path.abspath(output_root))
        self.url_builder = LinkPatternMatcher(app_host)
        self.logger = logger or logging.getLogger('clickup_offline_wiki.exporters.tree_materializer')
        self.written_paths: Set[Path] = set()

    def materialize(
        self,
        document: DocumentNode,
        catalog: Optional[PageCatalog] = None
    ) -> MaterializeResult:
        """
        Write a document tree and catalog every written file.

        Names are validated for the whole tree before anything is written.

        Args:
            document: Document root
            catalog: Catalog receiving the entries (a new one when omitted)

        Returns:
            MaterializeResult with the document path and the new entries

        Raises:
            InvalidNodeNameError: If any node has an empty or missing name
            OSError: If a directory or file cannot be written
        """
        self._validate_names(document)

        if catalog is None:
            catalog = PageCatalog(logger=self.logger)

        document_name = self.sanitize_name(document.name)
        result = MaterializeResult(
            document_id=document.document_id,
            document_path=str(self.output_root / document_name)
        )

        self.logger.info(
            f"Materializing document '{document.name}' ({document.document_id}) into {result.document_path}"
        )

        document_dir = self.output_root / document_name
        self._create_directory(document_dir)
        result.directory_count += 1

        if document.synthetic:
            child_parent_id = None
        else:
            child_parent_id = document.id
            if self._has_content(document) or not document.children:
                self._write_page(
                    document, document_dir / f"{document_name}.md", document, None, catalog, result
                )
            else:
                self.logger.debug(f"Document '{document.name}' has no content, only creating {document_dir}")

        for child in document.children:
            self._write_node(child, document_dir, document, child_parent_id, catalog, result)

        self.logger.info(
            f"Document '{document.name}': {result.page_count} files, "
            f"{result.directory_count} directories"
        )
        return result

    def _write_node(
        self,
        node: PageNode,
        parent_dir: Path,
        document: DocumentNode,
        parent_id: Optional[str],
        catalog: PageCatalog,
        result: MaterializeResult
    ) -> None:
        """Write a node and then its children (pre-order)."""
        name = self.sanitize_name(node.name)

        if node.children:
            node_dir = parent_dir / name
            self._create_directory(node_dir)
            result.directory_count += 1

            if self._has_content(node):
                self._write_page(node, node_dir / f"{name}.md", document, parent_id, catalog, result)
            else:
                self.logger.debug(f"Page '{node.name}' has no content, only creating {node_dir}")

            for child in node.children:
                self._write_node(child, node_dir, document, node.id, catalog, result)
        else:
            self._write_page(node, parent_dir / f"{name}.md", document, parent_id, catalog, result)

    def _write_page(
        self,
        node: PageNode,
        file_path: Path,
        document: DocumentNode,
        parent_id: Optional[str],
        catalog: PageCatalog,
        result: MaterializeResult
    ) -> None:
        if file_path in self.written_paths:
            self.logger.warning(f"Page '{node.name}' ({node.id}) overwrites {file_path}")

        self.logger.debug(f"Writing page '{node.name}' to {file_path}")

        try:
            with open(file_path, 'w', encoding='utf-8', newline='') as f:
                f.write(node.content)
        except (PermissionError, OSError) as e:
            self.logger.error(f"Failed to write page '{node.name}' to {file_path}: {e}")
            raise

        self.written_paths.add(file_path)

        original_url = None
        if document.workspace_id:
            original_url = self.url_builder.canonical_page_url(
                document.workspace_id, document.document_id, node.id
            )

        entry = CatalogEntry(
            id=node.id,
            document_id=document.document_id,
            workspace_id=document.workspace_id or '',
            name=node.name,
            absolute_path=str(file_path),
            original_url=original_url,
            parent_id=parent_id
        )
        catalog.add_entry(entry)
        result.entries.append(entry)
        result.page_count += 1

    @staticmethod
    def _has_content(node: PageNode) -> bool:
        return bool(node.content and node.content.strip())

    def _create_directory(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except (PermissionError, OSError) as e:
            self.logger.error(f"Failed to create directory {directory}: {e}")
            raise

    @staticmethod
    def _validate_names(document: DocumentNode) -> None:
        """Reject the tree if any node, the root included, lacks a name."""
        for node in document.iter_nodes():
            if not isinstance(node.name, str) or not node.name.strip():
                raise InvalidNodeNameError(
                    f"Node '{node.id}' in document '{document.document_id}' has no name"
                )

    @staticmethod
    def sanitize_name(name: str) -> str:
        """
        Convert a page or document name to a filesystem-safe name.

        Args:
            name: Page or document name

        Returns:
            Name made of letters, digits, underscores and hyphens
        """
        sanitized = re.sub(r'[^\w-]', '_', name or '')
        sanitized = re.sub(r'_+', '_', sanitized)
        sanitized = sanitized.strip('_')

        if len(sanitized) > MAX_NAME_LENGTH:
            sanitized = sanitized[:MAX_NAME_LENGTH].rstrip('_')

        return sanitized or UNTITLED_NAME


def find_all_markdown_files(directory: Union[str, Path]) -> List[Path]:
    """
    Recursively list markdown files under a directory.

    Args:
        directory: Root directory

    Returns:
        Sorted list of markdown file paths (empty if the directory does not exist)
    """
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(path for path in root.rglob('*.md') if path.is_file())


__all__ = [
    'MaterializationError',
    'InvalidNodeNameError',
    'TreeMaterializer',
    'find_all_markdown_files'
]
