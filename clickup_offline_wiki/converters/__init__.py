"""
Link handling for ClickUp markdown content.

- link_patterns: classifies URLs and extracts workspace, document and page ids
- link_parser: finds markdown links in page content
- link_transformer: rewrites resolvable links to relative file paths
"""

from .link_patterns import DEFAULT_APP_HOST, LinkMatch, LinkPatternMatcher
from .link_parser import LinkParser
from .link_transformer import LinkTransformer

__all__ = [
    'DEFAULT_APP_HOST',
    'LinkMatch',
    'LinkPatternMatcher',
    'LinkParser',
    'LinkTransformer'
]
