"""Run-scoped index of written pages, keyed by page id, original URL and document id."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import CatalogEntry, PageMappingEntry

logger = logging.getLogger('clickup_offline_wiki.catalog')


class PageCatalog:
    """
    Maps ClickUp identifiers to the markdown files written for them.

    Entries are added by the tree materializer while documents are written and
    are read by the link transformer once every document is on disk.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize an empty catalog.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('clickup_offline_wiki.catalog')
        self._by_id: Dict[str, CatalogEntry] = {}
        self._by_url: Dict[str, CatalogEntry] = {}
        self._by_document_id: Dict[str, List[CatalogEntry]] = {}

    def add_entry(self, entry: CatalogEntry) -> None:
        """
        Add an entry to all indices.

        A second entry with the same id replaces the first one.

        Args:
            entry: Entry describing a written file
        """
        previous = self._by_id.get(entry.id)
        if previous is not None:
            self.logger.debug(
                f"Duplicate catalog id '{entry.id}': replacing {previous.absolute_path} "
                f"with {entry.absolute_path}"
            )
            if previous.original_url and self._by_url.get(previous.original_url) is previous:
                del self._by_url[previous.original_url]
            siblings = self._by_document_id.get(previous.document_id, [])
            self._by_document_id[previous.document_id] = [e for e in siblings if e is not previous]

        self._by_id[entry.id] = entry
        if entry.original_url:
            self._by_url[entry.original_url] = entry
        self._by_document_id.setdefault(entry.document_id, []).append(entry)

        self.logger.debug(f"Cataloged page '{entry.name}' ({entry.id}) -> {entry.absolute_path}")

    def get_by_id(self, entry_id: str) -> Optional[CatalogEntry]:
        return self._by_id.get(entry_id)

    def get_by_url(self, url: str) -> Optional[CatalogEntry]:
        return self._by_url.get(url)

    def get_by_document_id(self, document_id: str) -> List[CatalogEntry]:
        return list(self._by_document_id.get(document_id, []))

    def get_document_entry(self, document_id: str) -> Optional[CatalogEntry]:
        """
        Select the entry that stands for a whole document.

        This is the first top-level page of the document, or its first entry
        when no entry is top-level.
        """
        entries = self._by_document_id.get(document_id)
        if not entries:
            return None

        for entry in entries:
            if entry.parent_id is None:
                return entry
        return entries[0]

    def entries(self) -> List[CatalogEntry]:
        return list(self._by_id.values())

    @property
    def entry_count(self) -> int:
        return len(self._by_id)

    @property
    def document_ids(self) -> List[str]:
        return [doc_id for doc_id, entries in self._by_document_id.items() if entries]

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._by_id

    def to_page_mapping(self) -> Dict[str, PageMappingEntry]:
        """
        Flatten the catalog into a lookup table for link rewriting.

        Keys are page ids, original URLs and document ids. A document-level key
        never replaces a page key with the same value.

        Returns:
            Dictionary of key to PageMappingEntry
        """
        mapping: Dict[str, PageMappingEntry] = {}

        for entry in self._by_id.values():
            view = PageMappingEntry(absolute_path=entry.absolute_path, name=entry.name)
            mapping[entry.id] = view
            if entry.original_url:
                mapping[entry.original_url] = view

        for document_id in self.document_ids:
            document_entry = self.get_document_entry(document_id)
            mapping.setdefault(
                document_id,
                PageMappingEntry(absolute_path=document_entry.absolute_path, name=document_entry.name)
            )

        return mapping

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entry_count': self.entry_count,
            'entries': [entry.to_dict() for entry in self._by_id.values()]
        }

    def dump_to_file(self, file_path: Union[str, Path]) -> Path:
        """
        Write the catalog as JSON for debugging.

        Args:
            file_path: Destination file

        Returns:
            Path of the written file
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

        self.logger.info(f"Catalog with {self.entry_count} entries written to {path}")
        return path


__all__ = ['PageCatalog']
