"""URL classification for ClickUp document and page links."""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple
from urllib.parse import urlparse

from ..models import LinkType

DEFAULT_APP_HOST = 'app.clickup.com'

IMAGE_EXTENSION_PATTERN = re.compile(r'\.(png|jpe?g|gif|svg|webp)$', re.IGNORECASE)

# Trailing part allowed after the last path segment of a ClickUp URL
_URL_TAIL = r'/?(?:[?#].*)?$'
_ID = r'[-a-zA-Z0-9]+'


@dataclass(frozen=True)
class LinkPattern:
    """A named URL pattern and the identifiers it extracts."""

    name: str
    link_type: LinkType
    regex: Pattern
    groups: Tuple[str, ...]


@dataclass(frozen=True)
class LinkMatch:
    """Result of classifying a URL."""

    link_type: LinkType
    workspace_id: Optional[str] = None
    document_id: Optional[str] = None
    page_id: Optional[str] = None
    block_reference: Optional[str] = None


class LinkPatternMatcher:
    """
    Classifies URLs into ClickUp link types.

    Patterns are tried in order, most specific first, and the first match wins.
    Document-only patterns are anchored at the end so that they never match a
    page URL, whatever order they end up in.
    """

    def __init__(self, app_host: str = DEFAULT_APP_HOST):
        """
        Initialize the matcher.

        Args:
            app_host: Host name of the ClickUp web app (e.g., "app.clickup.com")
        """
        self.app_host = app_host.strip().rstrip('/')
        self.patterns = self._build_patterns(self.app_host)

    @staticmethod
    def _build_patterns(app_host: str) -> List[LinkPattern]:
        prefix = r'^https?://' + re.escape(app_host) + r'/(?P<workspace_id>\d+)'

        return [
            LinkPattern(
                name='page_with_block',
                link_type=LinkType.PAGE,
                regex=re.compile(
                    prefix + r'/v/dc/(?P<document_id>' + _ID + r')/(?P<page_id>' + _ID + r')'
                    r'/?\?(?:[^#]*&)?block=(?P<block_reference>[^&#]+)'
                ),
                groups=('workspace_id', 'document_id', 'page_id', 'block_reference')
            ),
            LinkPattern(
                name='page',
                link_type=LinkType.PAGE,
                regex=re.compile(
                    prefix + r'/v/dc/(?P<document_id>' + _ID + r')/(?P<page_id>' + _ID + r')' + _URL_TAIL
                ),
                groups=('workspace_id', 'document_id', 'page_id')
            ),
            LinkPattern(
                name='cross_document_page',
                link_type=LinkType.CROSS_DOCUMENT,
                regex=re.compile(
                    prefix + r'/docs/(?P<document_id>' + _ID + r')/(?P<page_id>' + _ID + r')' + _URL_TAIL
                ),
                groups=('workspace_id', 'document_id', 'page_id')
            ),
            LinkPattern(
                name='document_view',
                link_type=LinkType.DOCUMENT,
                regex=re.compile(prefix + r'/v/dc/(?P<document_id>' + _ID + r')' + _URL_TAIL),
                groups=('workspace_id', 'document_id')
            ),
            LinkPattern(
                name='document',
                link_type=LinkType.DOCUMENT,
                regex=re.compile(prefix + r'/docs/(?P<document_id>' + _ID + r')' + _URL_TAIL),
                groups=('workspace_id', 'document_id')
            ),
        ]

    def match(self, url: str) -> Optional[LinkMatch]:
        """
        Match a URL against the ClickUp patterns.

        Args:
            url: URL to classify

        Returns:
            LinkMatch for PAGE, CROSS_DOCUMENT or DOCUMENT links, None otherwise
        """
        if not url:
            return None

        for pattern in self.patterns:
            found = pattern.regex.match(url.strip())
            if found:
                values = {group: found.group(group) for group in pattern.groups}
                return LinkMatch(link_type=pattern.link_type, **values)

        return None

    def classify(self, url: str, text: str = '') -> Optional[LinkMatch]:
        """
        Classify a link by URL and display text.

        Args:
            url: Link target
            text: Link display text

        Returns:
            LinkMatch of any type, or None for an embedded image (image URL with empty text)
        """
        if not text and self.is_image_url(url):
            return None

        matched = self.match(url)
        if matched:
            return matched

        if self.looks_external(url):
            return LinkMatch(link_type=LinkType.EXTERNAL)

        return LinkMatch(link_type=LinkType.UNKNOWN)

    @staticmethod
    def is_image_url(url: str) -> bool:
        path = url.split('#', 1)[0].split('?', 1)[0]
        return bool(IMAGE_EXTENSION_PATTERN.search(path))

    @staticmethod
    def looks_external(url: str) -> bool:
        """Whether a URL is a reachable address or an already-local markdown path."""
        url = url.strip()
        if not url:
            return False

        if url.startswith(('./', '../', '/', '#')) or '.md' in url:
            return True

        parsed = urlparse(url)
        if parsed.scheme == 'mailto':
            return True
        return bool(parsed.scheme and parsed.netloc)

    def canonical_page_url(self, workspace_id: str, document_id: str, page_id: str) -> str:
        """Build the canonical web URL of a page."""
        return f"https://{self.app_host}/{workspace_id}/v/dc/{document_id}/{page_id}"

    def canonical_document_url(self, workspace_id: str, document_id: str) -> str:
        """Build the canonical web URL of a document."""
        return f"https://{self.app_host}/{workspace_id}/v/dc/{document_id}"


__all__ = [
    'DEFAULT_APP_HOST',
    'LinkMatch',
    'LinkPattern',
    'LinkPatternMatcher'
]
