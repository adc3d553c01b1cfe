"""Link transformer rewriting ClickUp links to relative paths between exported files."""

import logging
import os
import re
from pathlib import Path, PurePath
from typing import List, Mapping, Optional, Tuple, Union

from ..catalog import PageCatalog
from ..models import LinkReplacement, LinkType, PageMappingEntry, ParsedLink, TransformResult
from .link_parser import LinkParser

logger = logging.getLogger('clickup_offline_wiki.converters.link_transformer')

UNTITLED_TEXT = 'Untitled'

RAW_URL_TEXT_PATTERN = re.compile(r'^\s*(?:[a-zA-Z][a-zA-Z0-9+.-]*://|www\.)\S*\s*$')

PageMapping = Mapping[str, PageMappingEntry]


class LinkTransformer:
    """
    Rewrites ClickUp links in markdown to relative paths.

    Only the URL of a link changes. The display text is kept byte for byte
    unless it is empty or a bare URL, in which case the target's name is used.
    Links that cannot be resolved, and external or unknown links, are left as they are.
    """

    def __init__(
        self,
        parser: Optional[LinkParser] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the link transformer.

        Args:
            parser: Link parser (defaults to one for app.clickup.com)
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('clickup_offline_wiki.converters.link_transformer')
        self.parser = parser or LinkParser(logger=self.logger)

    def transform(
        self,
        content: str,
        page_mapping: Union[PageCatalog, PageMapping],
        current_file_path: Union[str, PurePath],
        diagnose_links: bool = False
    ) -> Union[str, TransformResult]:
        """
        Rewrite all resolvable ClickUp links in content.

        Args:
            content: Markdown text
            page_mapping: PageCatalog or its flattened page mapping
            current_file_path: Absolute path of the file the content belongs to
            diagnose_links: Return a TransformResult instead of the text

        Returns:
            Transformed text, or TransformResult when diagnose_links is set
        """
        result = self.transform_with_diagnostics(content, page_mapping, current_file_path)
        return result if diagnose_links else result.transformed_content

    def transform_with_diagnostics(
        self,
        content: str,
        page_mapping: Union[PageCatalog, PageMapping],
        current_file_path: Union[str, PurePath]
    ) -> TransformResult:
        """Rewrite links and report every replacement and unresolved link."""
        if isinstance(page_mapping, PageCatalog):
            page_mapping = page_mapping.to_page_mapping()

        result = TransformResult(transformed_content=content)
        if not content:
            return result

        links = self.parser.parse_links(content)
        if not links:
            return result

        current_dir = os.path.dirname(os.path.abspath(str(current_file_path)))
        edits: List[Tuple[int, int, str]] = []
        claimed: List[Tuple[int, int]] = []

        for link in links:
            if not link.is_rewritable():
                continue

            target = self.resolve_target(link, page_mapping)
            if target is None:
                self.logger.debug(f"No local target for link: {link.original_url}")
                result.unresolved_links.append(link)
                continue

            if any(link.start < end and start < link.end for start, end in claimed):
                # Several links decoded from one encoded href; the first one wins
                continue
            claimed.append((link.start, link.end))

            local_link = self.build_local_link(target.absolute_path, current_dir, link)
            new_text = self.choose_display_text(link, target)

            edits.append((link.url_start, link.url_end, local_link))
            current_text = content[link.text_start:link.text_end]
            if new_text != current_text:
                edits.append((link.text_start, link.text_end, new_text))

            result.replaced_links.append(LinkReplacement(
                text=link.text,
                new_text=new_text,
                original_url=link.original_url or link.url,
                local_link=local_link,
                page_id=link.page_id,
                document_id=link.document_id
            ))

        # Apply from the end so earlier offsets stay valid
        transformed = content
        for start, end, replacement in sorted(edits, key=lambda edit: edit[0], reverse=True):
            transformed = transformed[:start] + replacement + transformed[end:]

        result.transformed_content = transformed

        if result.replaced_links:
            self.logger.debug(
                f"Rewrote {len(result.replaced_links)} links in {current_file_path}, "
                f"{len(result.unresolved_links)} unresolved"
            )
        return result

    @staticmethod
    def resolve_target(link: ParsedLink, page_mapping: PageMapping) -> Optional[PageMappingEntry]:
        """
        Find the mapping entry a link points at.

        Lookup order: exact URL, then page id, then document id.

        Args:
            link: Parsed link
            page_mapping: Flattened catalog

        Returns:
            PageMappingEntry or None if the link cannot be resolved
        """
        for url in (link.original_url, link.url):
            if url and url in page_mapping:
                return page_mapping[url]

        if link.link_type in (LinkType.PAGE, LinkType.CROSS_DOCUMENT):
            if link.page_id and link.page_id in page_mapping:
                return page_mapping[link.page_id]
            if link.document_id and link.document_id in page_mapping:
                return page_mapping[link.document_id]
        elif link.link_type == LinkType.DOCUMENT:
            if link.document_id and link.document_id in page_mapping:
                return page_mapping[link.document_id]

        return None

    @staticmethod
    def build_local_link(target_path: str, current_dir: str, link: ParsedLink) -> str:
        """
        Build the relative link from the current directory to a target file.

        Args:
            target_path: Absolute path of the target markdown file
            current_dir: Directory of the file being rewritten
            link: Parsed link supplying the anchor or block reference

        Returns:
            Relative POSIX path, always starting with ./ or ../
        """
        relative = Path(os.path.relpath(target_path, current_dir)).as_posix()
        if not relative.startswith(('./', '../')):
            relative = f"./{relative}"

        if link.anchor:
            relative += f"#{link.anchor}"
        elif link.block_reference:
            relative += f"?block={link.block_reference}"

        return relative

    @staticmethod
    def choose_display_text(link: ParsedLink, target: PageMappingEntry) -> str:
        """Keep meaningful link text, otherwise fall back to the target's name."""
        text = link.text or ''
        if text.strip() and not RAW_URL_TEXT_PATTERN.match(text):
            return text

        name = (target.name or '').strip()
        if not name:
            return UNTITLED_TEXT
        return name.replace('[', '\\[').replace(']', '\\]')


__all__ = ['LinkTransformer', 'PageMapping']
