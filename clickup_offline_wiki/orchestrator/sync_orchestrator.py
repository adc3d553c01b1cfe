"""
Sync orchestrator running the two phases of a sync.

Phase 1 fetches the seed documents and every document they reference,
writing each one to disk and filling the catalog. Phase 2 rewrites the links
in every markdown file under the output root against the complete catalog.
"""

import logging
import time
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Set, Tuple

from tqdm import tqdm

from ..catalog import PageCatalog
from ..config_loader import get_nested
from ..converters.link_parser import LinkParser
from ..converters.link_patterns import DEFAULT_APP_HOST, LinkPatternMatcher
from ..converters.link_transformer import LinkTransformer, PageMapping
from ..exporters.tree_materializer import TreeMaterializer, find_all_markdown_files
from ..fetchers import BaseFetcher, FetcherError, FetcherFactory
from ..logger import ProgressTracker, log_section
from ..models import DocumentNode
from .sync_report import SyncReport

logger = logging.getLogger(__name__)

CATALOG_DEBUG_FILE = 'catalog-debug.json'


class SyncError(Exception):
    """Raised when a sync run cannot produce any useful output."""
    pass


class SyncOrchestrator:
    """Central coordinator sequencing the sync phases: Fetch/Materialize → Rewrite → Report."""

    def __init__(
        self,
        config: Dict[str, Any],
        fetcher: Optional[BaseFetcher] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize sync orchestrator.

        Args:
            config: Configuration dictionary
            fetcher: Document fetcher (created from config when omitted)
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self.output_path = Path(get_nested(config, 'sync.output_path', '.clickup'))
        self.max_page_fetch_depth = int(get_nested(config, 'sync.max_page_fetch_depth', 3))
        self.max_page_depth = int(get_nested(config, 'sync.max_page_depth', -1))
        self.debug = bool(get_nested(config, 'sync.debug', False))
        self.show_progress = bool(get_nested(config, 'sync.show_progress', True))
        self.app_host = get_nested(config, 'clickup.app_host', DEFAULT_APP_HOST)

        self.matcher = LinkPatternMatcher(self.app_host)
        self.parser = LinkParser(self.matcher, logger=self.logger)
        self.transformer = LinkTransformer(self.parser, logger=self.logger)
        self.fetcher = fetcher or FetcherFactory.create_fetcher(config, self.logger)
        self.report_generator = SyncReport(self.logger)

        # Catalog of the most recent run
        self.catalog: Optional[PageCatalog] = None

        self.logger.info(
            f"SyncOrchestrator initialized: output={self.output_path}, "
            f"max_page_fetch_depth={self.max_page_fetch_depth}, debug={self.debug}"
        )

    def run(self, urls: List[str]) -> Dict[str, Any]:
        """
        Sync the documents behind the given URLs and everything they link to.

        Args:
            urls: ClickUp document or page URLs

        Returns:
            Sync report dictionary

        Raises:
            ValueError: If a URL does not identify a ClickUp document
            SyncError: If a seed document cannot be fetched
            MaterializationError: If a document tree has an unnamed node
            OSError: If the output cannot be written
        """
        seeds = self.parse_seed_urls(urls)
        start_time = time.time()

        catalog = PageCatalog(logger=self.logger)
        self.catalog = catalog
        phase_stats: Dict[str, Any] = {}

        log_section("Phase 1: Materialize documents")
        phase_stats['materialize'] = self._materialize_documents(seeds, catalog)

        if self.debug:
            catalog.dump_to_file(self.output_path / CATALOG_DEBUG_FILE)

        log_section("Phase 2: Rewrite links")
        phase_stats['rewrite'] = self._rewrite_links(catalog.to_page_mapping())

        duration = time.time() - start_time
        self.logger.info(f"Sync complete in {duration:.2f}s")

        return self.report_generator.generate_report(
            phase_stats,
            duration,
            str(self.output_path),
            catalog
        )

    def parse_seed_urls(self, urls: List[str]) -> List[Tuple[str, str]]:
        """
        Extract (workspace_id, document_id) pairs from seed URLs.

        Args:
            urls: ClickUp document or page URLs

        Returns:
            Unique seeds in the order given

        Raises:
            ValueError: If no URL is given or a URL is not a ClickUp document or page URL
        """
        if not urls:
            raise ValueError("At least one ClickUp document URL is required")

        seeds = []
        seen = set()
        for url in urls:
            matched = self.matcher.match(url)
            if matched is None or not matched.document_id or not matched.workspace_id:
                raise ValueError(f"Not a ClickUp document or page URL: {url}")
            if matched.document_id in seen:
                continue
            seen.add(matched.document_id)
            seeds.append((matched.workspace_id, matched.document_id))
        return seeds

    def _materialize_documents(
        self,
        seeds: List[Tuple[str, str]],
        catalog: PageCatalog
    ) -> Dict[str, Any]:
        """Fetch and write seed documents, then the documents they reference, breadth first."""
        stats: Dict[str, Any] = {
            'documents_synced': 0,
            'documents_failed': 0,
            'documents_skipped': 0,
            'pages_written': 0,
            'directories_created': 0,
            'documents': [],
            'errors': []
        }

        materializer = TreeMaterializer(self.output_path, self.app_host, logger=self.logger)
        visited_document_ids: Set[str] = set()
        queue: Deque[Tuple[str, str, int, bool]] = deque(
            (workspace_id, document_id, 0, True) for workspace_id, document_id in seeds
        )

        while queue:
            workspace_id, document_id, depth, is_seed = queue.popleft()
            if document_id in visited_document_ids:
                continue

            if self.max_page_fetch_depth != -1 and depth > self.max_page_fetch_depth:
                self.logger.info(
                    f"Not following document {document_id}: depth {depth} exceeds "
                    f"limit {self.max_page_fetch_depth}"
                )
                stats['documents_skipped'] += 1
                continue

            visited_document_ids.add(document_id)

            try:
                document = self.fetcher.fetch_document(workspace_id, document_id, self.max_page_depth)
            except FetcherError as e:
                if is_seed:
                    raise SyncError(f"Failed to fetch document {document_id}: {e}") from e
                self.logger.warning(f"Skipping referenced document {document_id}: {e}")
                stats['documents_failed'] += 1
                stats['errors'].append({'document_id': document_id, 'error': str(e)})
                continue

            if not document.workspace_id:
                document.workspace_id = workspace_id

            result = materializer.materialize(document, catalog)

            stats['documents_synced'] += 1
            stats['pages_written'] += result.page_count
            stats['directories_created'] += result.directory_count
            stats['documents'].append({
                **result.to_dict(),
                'name': document.name,
                'depth': depth
            })

            for referenced_workspace_id, referenced_id in self.find_referenced_documents(document):
                if referenced_id not in visited_document_ids:
                    self.logger.debug(f"Document {document_id} references document {referenced_id}")
                    queue.append((referenced_workspace_id or document.workspace_id, referenced_id, depth + 1, False))

        return stats

    def find_referenced_documents(self, document: DocumentNode) -> List[Tuple[str, str]]:
        """
        Collect documents linked from any page of a document.

        Args:
            document: Fetched document

        Returns:
            Unique (workspace_id, document_id) pairs other than the document itself
        """
        referenced = []
        seen = set()
        for page in document.iter_pages():
            for workspace_id, document_id in self.parser.find_referenced_documents(
                page.content, document.document_id
            ):
                if document_id not in seen:
                    seen.add(document_id)
                    referenced.append((workspace_id, document_id))
        return referenced

    def _rewrite_links(self, page_mapping: PageMapping) -> Dict[str, Any]:
        """Rewrite links in every markdown file under the output root."""
        stats: Dict[str, Any] = {
            'files_scanned': 0,
            'files_updated': 0,
            'files_failed': 0,
            'links_rewritten': 0,
            'links_unresolved': 0,
            'errors': []
        }

        markdown_files = find_all_markdown_files(self.output_path)

        with ProgressTracker(len(markdown_files), "files") as tracker:
            for file_path in tqdm(
                markdown_files,
                desc="Rewriting links",
                unit="file",
                disable=not self.show_progress
            ):
                stats['files_scanned'] += 1
                try:
                    replaced, unresolved = self.rewrite_file(file_path, page_mapping)
                    stats['links_rewritten'] += replaced
                    stats['links_unresolved'] += unresolved
                    if replaced:
                        stats['files_updated'] += 1
                    tracker.increment(success=True)
                except Exception as e:
                    self.logger.error(f"Failed to rewrite links in {file_path}: {e}")
                    stats['files_failed'] += 1
                    stats['errors'].append({'file': str(file_path), 'error': str(e)})
                    tracker.increment(success=False)

        return stats

    def rewrite_file(self, file_path: Path, page_mapping: PageMapping) -> Tuple[int, int]:
        """
        Rewrite the links of one markdown file in place.

        The file is only written when its content changes.

        Args:
            file_path: Markdown file
            page_mapping: Flattened catalog

        Returns:
            Tuple of (links rewritten, links left unresolved)
        """
        with open(file_path, 'r', encoding='utf-8', newline='') as f:
            content = f.read()

        result = self.transformer.transform_with_diagnostics(content, page_mapping, file_path)

        if result.transformed_content != content:
            with open(file_path, 'w', encoding='utf-8', newline='') as f:
                f.write(result.transformed_content)
            self.logger.debug(f"Updated {len(result.replaced_links)} links in {file_path}")

        return len(result.replaced_links), len(result.unresolved_links)


__all__ = ['SyncError', 'SyncOrchestrator']
