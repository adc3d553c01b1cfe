"""End-to-end tests of a sync run against an in-memory fetcher."""

import json

import pytest

from clickup_offline_wiki.exporters import InvalidNodeNameError
from clickup_offline_wiki.fetchers import LocalFetcher
from clickup_offline_wiki.orchestrator import SyncError, SyncOrchestrator

from conftest import FakeFetcher, document_url, make_document, page, page_url


def linked_documents():
    """Doc A links to a page of Doc B and to Doc B itself."""
    doc_a = make_document('doc-a', 'Doc A', [
        page('a1', 'Page A1', (
            f"Read [B1]({page_url('doc-b', 'b1')}) and the "
            f"[whole doc]({document_url('doc-b')}).\n"
        )),
    ])
    doc_b = make_document('doc-b', 'Doc B', [page('b1', 'Page B1', 'Content of B1\n')])
    return doc_a, doc_b


def chain(length):
    """Documents d0 -> d1 -> ... each linking to the next one."""
    documents = []
    for index in range(length):
        content = f"[next]({document_url(f'd{index + 1}')})" if index + 1 < length else 'end'
        documents.append(make_document(f'd{index}', f'Doc {index}', [page(f'p{index}', f'Page {index}', content)]))
    return documents


class TestCrossDocumentSync:
    """Test following and rewriting links between documents."""

    def test_links_between_documents_are_rewritten(self, sync_config, tmp_path):
        fetcher = FakeFetcher(linked_documents())
        orchestrator = SyncOrchestrator(sync_config, fetcher=fetcher)

        report = orchestrator.run([document_url('doc-a')])

        out = tmp_path / 'out'
        assert (out / 'Doc_A' / 'Page_A1.md').read_text(encoding='utf-8') == (
            "Read [B1](../Doc_B/Page_B1.md) and the [whole doc](../Doc_B/Page_B1.md).\n"
        )
        assert (out / 'Doc_B' / 'Page_B1.md').read_text(encoding='utf-8') == 'Content of B1\n'
        assert fetcher.calls == ['doc-a', 'doc-b']

        summary = report['summary']
        assert summary['documents_synced'] == 2
        assert summary['pages_written'] == 2
        assert summary['catalog_entries'] == 2
        assert summary['files_scanned'] == 2
        assert summary['files_updated'] == 1
        assert summary['links_rewritten'] == 2
        assert summary['links_unresolved'] == 0
        assert summary['total_errors'] == 0
        assert [d['document_id'] for d in report['documents']] == ['doc-a', 'doc-b']
        assert [d['depth'] for d in report['documents']] == [0, 1]

    def test_cycles_fetch_each_document_once(self, sync_config):
        doc_a = make_document('doc-a', 'Doc A', [page('a1', 'A', f"[B]({document_url('doc-b')})")])
        doc_b = make_document('doc-b', 'Doc B', [page('b1', 'B', f"[A]({document_url('doc-a')})")])
        fetcher = FakeFetcher([doc_a, doc_b])

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('doc-a')])

        assert fetcher.calls == ['doc-a', 'doc-b']
        assert report['summary']['links_rewritten'] == 2

    def test_page_links_alone_do_not_pull_in_documents(self, sync_config):
        doc_a = make_document('doc-a', 'Doc A', [page('a1', 'A', f"[B1]({page_url('doc-b', 'b1')})")])
        fetcher = FakeFetcher([doc_a])

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('doc-a')])

        assert fetcher.calls == ['doc-a']
        assert report['summary']['links_unresolved'] == 1

    def test_page_url_seed(self, sync_config):
        fetcher = FakeFetcher(linked_documents())

        SyncOrchestrator(sync_config, fetcher=fetcher).run([page_url('doc-b', 'b1')])

        assert fetcher.calls == ['doc-b']

    def test_duplicate_seeds(self, sync_config):
        fetcher = FakeFetcher(linked_documents())

        SyncOrchestrator(sync_config, fetcher=fetcher).run([
            document_url('doc-b'), page_url('doc-b', 'b1')
        ])

        assert fetcher.calls == ['doc-b']


class TestDepthLimit:

    def test_depth_zero_only_syncs_seeds(self, sync_config, tmp_path):
        sync_config['sync']['max_page_fetch_depth'] = 0
        fetcher = FakeFetcher(linked_documents())

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('doc-a')])

        assert fetcher.calls == ['doc-a']
        assert not (tmp_path / 'out' / 'Doc_B').exists()
        assert report['summary']['documents_skipped'] == 1
        assert report['summary']['links_unresolved'] == 2
        content = (tmp_path / 'out' / 'Doc_A' / 'Page_A1.md').read_text(encoding='utf-8')
        assert page_url('doc-b', 'b1') in content

    def test_default_depth_stops_after_three_hops(self, sync_config):
        fetcher = FakeFetcher(chain(6))

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('d0')])

        assert fetcher.calls == ['d0', 'd1', 'd2', 'd3']
        assert report['summary']['documents_skipped'] == 1

    def test_unlimited_depth(self, sync_config):
        sync_config['sync']['max_page_fetch_depth'] = -1
        fetcher = FakeFetcher(chain(6))

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('d0')])

        assert fetcher.calls == ['d0', 'd1', 'd2', 'd3', 'd4', 'd5']
        assert report['summary']['links_rewritten'] == 5


class TestFailures:

    def test_failed_referenced_document_is_reported(self, sync_config):
        doc_a = make_document('doc-a', 'Doc A', [page('a1', 'A', f"[X]({document_url('doc-x')})")])
        fetcher = FakeFetcher([doc_a])

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('doc-a')])

        summary = report['summary']
        assert summary['documents_synced'] == 1
        assert summary['documents_failed'] == 1
        assert summary['total_errors'] == 1
        assert report['errors'][0]['phase'] == 'materialize'
        assert report['errors'][0]['document_id'] == 'doc-x'

    def test_malformed_referenced_document_is_skipped(self, sync_config, tmp_path):
        data = tmp_path / 'dumps'
        data.mkdir()
        (data / 'doc-a.json').write_text(json.dumps([
            {'id': 'a1', 'name': 'Page A1', 'content': f"See [B]({document_url('doc-b')})\n"},
        ]), encoding='utf-8')
        (data / 'doc-b.json').write_text(json.dumps([
            {'id': 'b1', 'name': 'Page B1', 'content': 'b', 'pages': ['oops']},
        ]), encoding='utf-8')
        fetcher = LocalFetcher({'sync': {'data_dir': str(data)}})

        report = SyncOrchestrator(sync_config, fetcher=fetcher).run([document_url('doc-a')])

        summary = report['summary']
        assert summary['documents_synced'] == 1
        assert summary['documents_failed'] == 1
        assert report['errors'][0]['document_id'] == 'doc-b'
        assert 'Malformed' in report['errors'][0]['error']
        assert (tmp_path / 'out' / 'Root' / 'Page_A1.md').is_file()

    def test_failed_seed_aborts(self, sync_config):
        with pytest.raises(SyncError):
            SyncOrchestrator(sync_config, fetcher=FakeFetcher([])).run([document_url('doc-a')])

    def test_invalid_seed_url(self, sync_config):
        orchestrator = SyncOrchestrator(sync_config, fetcher=FakeFetcher([]))

        with pytest.raises(ValueError):
            orchestrator.run(['https://example.com/not-clickup'])
        with pytest.raises(ValueError):
            orchestrator.run([])

    def test_nameless_page_aborts(self, sync_config):
        broken = make_document('doc-a', 'Doc A', [page('a1', '')])

        with pytest.raises(InvalidNodeNameError):
            SyncOrchestrator(sync_config, fetcher=FakeFetcher([broken])).run([document_url('doc-a')])

    def test_unreadable_file_is_counted(self, sync_config, tmp_path):
        out = tmp_path / 'out'
        out.mkdir()
        (out / 'stray.md').write_bytes(b'\xff\xfe not utf-8')

        report = SyncOrchestrator(sync_config, fetcher=FakeFetcher(linked_documents())).run(
            [document_url('doc-a')]
        )

        assert report['summary']['files_failed'] == 1
        assert report['summary']['total_errors'] == 1
        assert report['errors'][0]['phase'] == 'rewrite'


class TestRewritePass:

    def test_second_rewrite_changes_nothing(self, sync_config, tmp_path):
        orchestrator = SyncOrchestrator(sync_config, fetcher=FakeFetcher(linked_documents()))
        orchestrator.run([document_url('doc-a')])
        before = (tmp_path / 'out' / 'Doc_A' / 'Page_A1.md').read_text(encoding='utf-8')

        stats = orchestrator._rewrite_links(orchestrator.catalog.to_page_mapping())

        assert stats['files_updated'] == 0
        assert stats['links_rewritten'] == 0
        assert (tmp_path / 'out' / 'Doc_A' / 'Page_A1.md').read_text(encoding='utf-8') == before

    def test_debug_writes_catalog_dump(self, sync_config, tmp_path):
        sync_config['sync']['debug'] = True

        SyncOrchestrator(sync_config, fetcher=FakeFetcher(linked_documents())).run([document_url('doc-a')])

        dump = json.loads((tmp_path / 'out' / 'catalog-debug.json').read_text(encoding='utf-8'))
        assert dump['entry_count'] == 2
        assert {entry['id'] for entry in dump['entries']} == {'a1', 'b1'}

    def test_no_dump_without_debug(self, sync_config, tmp_path):
        SyncOrchestrator(sync_config, fetcher=FakeFetcher(linked_documents())).run([document_url('doc-a')])

        assert not (tmp_path / 'out' / 'catalog-debug.json').exists()
