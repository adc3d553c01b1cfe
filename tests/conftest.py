"""Shared fixtures: an in-memory fetcher and small document trees."""

import pytest

from clickup_offline_wiki.fetchers import BaseFetcher, FetcherError
from clickup_offline_wiki.models import DocumentNode, PageNode

WORKSPACE_ID = '1234'


class FakeFetcher(BaseFetcher):
    """Serves prebuilt documents and records every fetch."""

    def __init__(self, documents, failing=()):
        super().__init__({})
        self.documents = {document.document_id: document for document in documents}
        self.failing = set(failing)
        self.calls = []

    def fetch_document(self, workspace_id, document_id, max_page_depth=-1):
        self.calls.append(document_id)
        if document_id in self.failing or document_id not in self.documents:
            raise FetcherError(f"Document {document_id} not found")
        return self.documents[document_id]


def make_document(document_id, name, pages, workspace_id=WORKSPACE_ID):
    """Build a synthetic-root document from top-level pages."""
    return DocumentNode(
        id=document_id,
        name=name,
        content='',
        children=list(pages),
        document_id=document_id,
        workspace_id=workspace_id,
        synthetic=True
    )


def page(page_id, name, content='', children=()):
    return PageNode(id=page_id, name=name, content=content, children=list(children))


def page_url(document_id, page_id, workspace_id=WORKSPACE_ID):
    return f"https://app.clickup.com/{workspace_id}/v/dc/{document_id}/{page_id}"


def document_url(document_id, workspace_id=WORKSPACE_ID):
    return f"https://app.clickup.com/{workspace_id}/v/dc/{document_id}"


@pytest.fixture
def sync_config(tmp_path):
    """Configuration writing into a temporary output directory."""
    return {
        'clickup': {'api_key': 'pk_test', 'app_host': 'app.clickup.com'},
        'sync': {
            'mode': 'api',
            'output_path': str(tmp_path / 'out'),
            'max_page_fetch_depth': 3,
            'max_page_depth': -1,
            'debug': False,
            'show_progress': False,
        },
    }
