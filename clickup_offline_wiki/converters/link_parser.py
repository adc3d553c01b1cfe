"""Markdown link parser that discovers ClickUp and generic links in page content."""

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import parse_qsl, unquote, urlencode

from ..models import LinkType, ParsedLink
from .link_patterns import DEFAULT_APP_HOST, LinkPatternMatcher

logger = logging.getLogger('clickup_offline_wiki.converters.link_parser')

MAX_CHARS_BETWEEN_BRACKETS = 1000  # Prevent catastrophic backtracking
MAX_NESTED_LINK_DEPTH = 3

# Opening of an inline link; images (![alt](src)) and escaped brackets are skipped.
# The text may hold one level of balanced brackets ("[see [1]](...)") unless the
# inner pair opens a link of its own.
LINK_START_PATTERN = re.compile(
    r'(?<![!\\])\[((?:[^\[\]]|\[[^\[\]]{0,' + str(MAX_CHARS_BETWEEN_BRACKETS) + r'}\](?!\())'
    r'{0,' + str(MAX_CHARS_BETWEEN_BRACKETS) + r'})\]\('
)
# An href that is itself a whole markdown link, e.g. "[Title](https://...)"
NESTED_LINK_PATTERN = re.compile(r'^\s*\[[^\[\]]*\]\(.*\)\s*$', re.DOTALL)
FENCED_CODE_PATTERN = re.compile(
    r'^ {0,3}(`{3,}|~{3,})[^\n]*\n.*?(?:^ {0,3}\1[ \t]*$|\Z)',
    re.MULTILINE | re.DOTALL
)
INLINE_CODE_PATTERN = re.compile(r'(`+)[^\n]+?\1')

DOCUMENT_LINK_TYPES = (LinkType.DOCUMENT, LinkType.CROSS_DOCUMENT)


class LinkParser:
    """
    Scans markdown content for inline links.

    The parser:
    1. Finds every [text](url) construct outside of code blocks and code spans
    2. Splits a #fragment into the anchor and a block= query parameter into the block reference
    3. Classifies the cleaned URL with the LinkPatternMatcher
    4. Expands links whose href is itself a (possibly percent-encoded) markdown link

    Parsing has no side effects; the same content always yields the same links.
    """

    def __init__(
        self,
        matcher: Optional[LinkPatternMatcher] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the link parser.

        Args:
            matcher: Pattern matcher (defaults to one for app.clickup.com)
            logger: Logger instance
        """
        self.matcher = matcher or LinkPatternMatcher(DEFAULT_APP_HOST)
        self.logger = logger or logging.getLogger('clickup_offline_wiki.converters.link_parser')

    def parse_links(self, content: str) -> List[ParsedLink]:
        """
        Find all links in markdown content.

        Args:
            content: Markdown text

        Returns:
            Parsed links in order of first occurrence
        """
        if not content:
            return []
        return self._parse(content, depth=0, offset=0)

    def find_referenced_documents(
        self,
        content: str,
        current_document_id: Optional[str] = None
    ) -> List[Tuple[str, str]]:
        """
        Collect documents referenced from content, other than the current one.

        Args:
            content: Markdown text
            current_document_id: Document the content belongs to

        Returns:
            Unique (workspace_id, document_id) pairs in order of first occurrence
        """
        referenced = []
        seen = set()

        for link in self.parse_links(content):
            if link.link_type not in DOCUMENT_LINK_TYPES:
                continue
            if not link.document_id or link.document_id == current_document_id:
                continue
            if link.document_id in seen:
                continue
            seen.add(link.document_id)
            referenced.append((link.workspace_id, link.document_id))

        return referenced

    def _parse(self, content: str, depth: int, offset: int) -> List[ParsedLink]:
        links: List[ParsedLink] = []
        protected = self._protected_ranges(content)
        position = 0

        while True:
            found = LINK_START_PATTERN.search(content, position)
            if not found:
                break

            start = found.start()
            if self._is_protected(start, protected):
                position = start + 1
                continue

            destination = self._scan_destination(content, found.end())
            if destination is None:
                position = start + 1
                continue

            url_start, url_end, end = destination
            spans = {
                'start': offset + start,
                'end': offset + end,
                'text_start': offset + found.start(1),
                'text_end': offset + found.end(1),
                'url_start': offset + url_start,
                'url_end': offset + url_end,
            }
            raw_url = content[url_start:url_end]
            text = found.group(1)

            nested = self._parse_nested(raw_url, text, depth, offset + url_start, spans)
            if nested:
                links.extend(nested)
            else:
                link = self._build_link(raw_url, text, spans)
                if link is not None:
                    links.append(link)

            position = end

        return links

    def _parse_nested(
        self,
        raw_url: str,
        text: str,
        depth: int,
        url_offset: int,
        spans: dict
    ) -> List[ParsedLink]:
        """Parse an href that is itself a markdown link."""
        if depth >= MAX_NESTED_LINK_DEPTH:
            return []

        decoded = unquote(raw_url)
        if not NESTED_LINK_PATTERN.match(decoded):
            return []

        if decoded == raw_url:
            # Inner link is written out in the content, its spans are real positions
            return self._parse(raw_url, depth + 1, url_offset)

        inner_links = self._parse(decoded, depth + 1, 0)
        for link in inner_links:
            for key, value in spans.items():
                setattr(link, key, value)
            if text:
                link.text = text

        if inner_links:
            self.logger.debug(f"Decoded {len(inner_links)} link(s) from encoded href: {raw_url[:80]}")
        return inner_links

    def _build_link(self, raw_url: str, text: str, spans: dict) -> Optional[ParsedLink]:
        clean_url, block_reference, anchor = self._split_url(raw_url)

        # A bare "#anchor" leaves nothing after the split; classify what was written
        matched = self.matcher.classify(clean_url or raw_url.strip(), text)
        if matched is None:
            return None

        return ParsedLink(
            url=clean_url,
            original_url=raw_url,
            text=text,
            link_type=matched.link_type,
            workspace_id=matched.workspace_id,
            document_id=matched.document_id,
            page_id=matched.page_id,
            block_reference=block_reference or matched.block_reference,
            anchor=anchor,
            **spans
        )

    @staticmethod
    def _split_url(raw_url: str) -> Tuple[str, Optional[str], Optional[str]]:
        """
        Strip the anchor and the block reference from a URL.

        Returns:
            Tuple of (clean URL, block reference, anchor)
        """
        url = raw_url.strip()
        anchor = None
        block_reference = None

        if '#' in url:
            url, fragment = url.split('#', 1)
            anchor = fragment or None

        if '?' in url:
            base, query = url.split('?', 1)
            params = parse_qsl(query, keep_blank_values=True)
            blocks = [value for key, value in params if key == 'block']
            if blocks:
                block_reference = blocks[0] or None
                remaining = [(key, value) for key, value in params if key != 'block']
                url = base + ('?' + urlencode(remaining) if remaining else '')

        return url, block_reference, anchor

    @staticmethod
    def _scan_destination(content: str, index: int) -> Optional[Tuple[int, int, int]]:
        """
        Read a link destination starting right after the opening parenthesis.

        Returns:
            Tuple of (url start, url end, construct end) or None if the construct is not a link
        """
        length = len(content)
        position = index
        while position < length and content[position] in ' \t':
            position += 1

        if position < length and content[position] == '<':
            close = content.find('>', position + 1)
            if close == -1 or '\n' in content[position + 1:close]:
                return None
            url_start, url_end = position + 1, close
            position = close + 1
        else:
            url_start = position
            depth = 0
            while position < length:
                char = content[position]
                if char == '\\' and position + 1 < length:
                    position += 2
                    continue
                if char == '(':
                    depth += 1
                elif char == ')':
                    if depth == 0:
                        break
                    depth -= 1
                elif char in ' \t\n':
                    break
                position += 1
            url_end = position

        # Optional title: (url "title")
        title_start = position
        while position < length and content[position] in ' \t':
            position += 1
        if position < length and content[position] == ')':
            return url_start, url_end, position + 1

        if position < length and position > title_start and content[position] in '"\'(':
            closing = ')' if content[position] == '(' else content[position]
            close = content.find(closing, position + 1)
            if close == -1:
                return None
            position = close + 1
            while position < length and content[position] in ' \t':
                position += 1
            if position < length and content[position] == ')':
                return url_start, url_end, position + 1

        return None

    @staticmethod
    def _protected_ranges(content: str) -> List[Tuple[int, int]]:
        """Character ranges covered by fenced code blocks and inline code spans."""
        ranges = [(found.start(), found.end()) for found in FENCED_CODE_PATTERN.finditer(content)]
        for found in INLINE_CODE_PATTERN.finditer(content):
            if not LinkParser._is_protected(found.start(), ranges):
                ranges.append((found.start(), found.end()))
        return ranges

    @staticmethod
    def _is_protected(position: int, ranges: List[Tuple[int, int]]) -> bool:
        return any(start <= position < end for start, end in ranges)


__all__ = ['LinkParser', 'MAX_NESTED_LINK_DEPTH']
