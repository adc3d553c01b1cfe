"""Data models for the ClickUp document tree, the page catalog and parsed links."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class LinkType(Enum):
    """Classification of a URL found in page content."""
    PAGE = "page"
    DOCUMENT = "document"
    CROSS_DOCUMENT = "cross_document"
    EXTERNAL = "external"
    UNKNOWN = "unknown"

    @property
    def is_rewritable(self) -> bool:
        """Whether links of this type are candidates for local rewriting."""
        return self not in (LinkType.EXTERNAL, LinkType.UNKNOWN)


@dataclass
class PageNode:
    """A page in a ClickUp document tree."""

    id: str
    name: str
    content: str = ''
    children: List['PageNode'] = field(default_factory=list)
    parent_id: Optional[str] = None

    def add_child(self, child: 'PageNode') -> None:
        """Add a child page."""
        child.parent_id = self.id
        self.children.append(child)

    def has_children(self) -> bool:
        return bool(self.children)

    def iter_nodes(self) -> Iterator['PageNode']:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize page (and its subtree) to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'content': self.content,
            'parent_id': self.parent_id,
            'pages': [child.to_dict() for child in self.children]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], parent_id: Optional[str] = None) -> 'PageNode':
        """
        Build a page subtree from a ClickUp API page object.

        The API nests child pages under ``pages``; ``children`` is accepted as well.
        A missing name is kept empty so that materialization can reject it.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Page entry must be an object, got {type(data).__name__}")

        page_id = str(data.get('id', ''))
        content = data.get('content') or ''
        if not isinstance(content, str):
            raise TypeError(f"Content of page '{page_id}' must be a string, got {type(content).__name__}")

        node = cls(
            id=page_id,
            name=data.get('name') or '',
            content=content,
            parent_id=parent_id if parent_id is not None else _optional_str(data.get('parent_page_id'))
        )
        for child in data.get('pages') or data.get('children') or []:
            node.children.append(cls.from_dict(child, parent_id=page_id))
        return node


@dataclass
class DocumentNode(PageNode):
    """
    Root of a ClickUp document tree.

    A synthetic root has no content of its own and only hosts the document's
    top-level pages. A non-synthetic root is a real page with its own content.
    """

    document_id: Optional[str] = None
    workspace_id: Optional[str] = None
    synthetic: bool = False

    def __post_init__(self) -> None:
        if self.document_id is None:
            self.document_id = self.id

    def iter_pages(self) -> Iterator[PageNode]:
        """Yield every real page of the document in pre-order."""
        if self.synthetic:
            for child in self.children:
                yield from child.iter_nodes()
        else:
            yield from self.iter_nodes()

    def count_pages(self) -> int:
        return sum(1 for _ in self.iter_pages())

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'document_id': self.document_id,
            'workspace_id': self.workspace_id,
            'synthetic': self.synthetic
        })
        return data


@dataclass(frozen=True)
class CatalogEntry:
    """Location of one written markdown file, recorded at write time."""

    id: str
    document_id: str
    workspace_id: str
    name: str
    absolute_path: str
    original_url: Optional[str] = None
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'document_id': self.document_id,
            'workspace_id': self.workspace_id,
            'name': self.name,
            'absolute_path': self.absolute_path,
            'original_url': self.original_url,
            'parent_id': self.parent_id
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CatalogEntry':
        return cls(
            id=data['id'],
            document_id=data['document_id'],
            workspace_id=data['workspace_id'],
            name=data['name'],
            absolute_path=data['absolute_path'],
            original_url=data.get('original_url'),
            parent_id=data.get('parent_id')
        )


@dataclass(frozen=True)
class PageMappingEntry:
    """Flattened catalog view consumed by the link transformer."""

    absolute_path: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {'absolute_path': self.absolute_path, 'name': self.name}


@dataclass
class ParsedLink:
    """A markdown link discovered in page content.

    Offsets are positions in the content that was handed to the parser. A link
    decoded from a percent-encoded href shares the spans of the enclosing link.
    """

    url: str
    text: str
    link_type: LinkType
    original_url: Optional[str] = None
    workspace_id: Optional[str] = None
    document_id: Optional[str] = None
    page_id: Optional[str] = None
    block_reference: Optional[str] = None
    anchor: Optional[str] = None
    start: int = -1
    end: int = -1
    text_start: int = -1
    text_end: int = -1
    url_start: int = -1
    url_end: int = -1

    def is_rewritable(self) -> bool:
        return self.link_type.is_rewritable

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'original_url': self.original_url,
            'text': self.text,
            'link_type': self.link_type.value,
            'workspace_id': self.workspace_id,
            'document_id': self.document_id,
            'page_id': self.page_id,
            'block_reference': self.block_reference,
            'anchor': self.anchor
        }


@dataclass
class LinkReplacement:
    """Diagnostic record of a single rewritten link."""

    text: str
    new_text: str
    original_url: str
    local_link: str
    page_id: Optional[str] = None
    document_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'new_text': self.new_text,
            'original_url': self.original_url,
            'local_link': self.local_link,
            'page_id': self.page_id,
            'document_id': self.document_id
        }


@dataclass
class TransformResult:
    """Transformed content plus per-link diagnostics."""

    transformed_content: str
    replaced_links: List[LinkReplacement] = field(default_factory=list)
    unresolved_links: List[ParsedLink] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.replaced_links)


@dataclass
class MaterializeResult:
    """Outcome of writing one document tree to disk."""

    document_id: str
    document_path: str
    page_count: int = 0
    directory_count: int = 0
    entries: List[CatalogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'document_id': self.document_id,
            'document_path': self.document_path,
            'page_count': self.page_count,
            'directory_count': self.directory_count
        }


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


__all__ = [
    'LinkType',
    'PageNode',
    'DocumentNode',
    'CatalogEntry',
    'PageMappingEntry',
    'ParsedLink',
    'LinkReplacement',
    'TransformResult',
    'MaterializeResult'
]
