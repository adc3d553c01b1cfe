"""
Sync report generator for aggregating statistics and formatting reports.

This module builds the report of a sync run from the phase statistics and
formats it for console display and JSON export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..catalog import PageCatalog

logger = logging.getLogger(__name__)


class SyncReport:
    """Builds sync reports from the statistics of both phases."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize sync report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def generate_report(
        self,
        phase_stats: Dict[str, Any],
        duration: float,
        output_path: str,
        catalog: Optional[PageCatalog] = None
    ) -> Dict[str, Any]:
        """
        Generate the sync report.

        Args:
            phase_stats: Statistics of the materialize and rewrite phases
            duration: Total run duration in seconds
            output_path: Output root of the run
            catalog: Catalog built during the run

        Returns:
            Sync report dictionary
        """
        materialize = phase_stats.get('materialize', {})
        rewrite = phase_stats.get('rewrite', {})
        errors = self._collect_errors(phase_stats)

        report = {
            'summary': {
                'documents_synced': materialize.get('documents_synced', 0),
                'documents_failed': materialize.get('documents_failed', 0),
                'documents_skipped': materialize.get('documents_skipped', 0),
                'pages_written': materialize.get('pages_written', 0),
                'directories_created': materialize.get('directories_created', 0),
                'catalog_entries': catalog.entry_count if catalog is not None else 0,
                'files_scanned': rewrite.get('files_scanned', 0),
                'files_updated': rewrite.get('files_updated', 0),
                'files_failed': rewrite.get('files_failed', 0),
                'links_rewritten': rewrite.get('links_rewritten', 0),
                'links_unresolved': rewrite.get('links_unresolved', 0),
                'total_errors': len(errors),
                'duration': duration,
                'duration_formatted': self._format_duration(duration),
                'output_path': output_path
            },
            'documents': materialize.get('documents', []),
            'errors': errors,
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {report['summary']['documents_synced']} documents, "
            f"{report['summary']['total_errors']} errors"
        )
        return report

    @staticmethod
    def _collect_errors(phase_stats: Dict[str, Any]) -> List[Dict[str, Any]]:
        errors = []
        for phase_name, stats in phase_stats.items():
            for error in stats.get('errors', []):
                errors.append({'phase': phase_name, **error})
        return errors

    @staticmethod
    def _format_duration(seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes, seconds = divmod(int(seconds), 60)
        return f"{minutes}m {seconds}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Sync report dictionary

        Returns:
            Formatted console string
        """
        summary = report.get('summary', {})
        sections = [
            "=" * 60,
            "SYNC REPORT",
            "=" * 60,
            "",
            "Summary:",
            f"  Documents:   {summary.get('documents_synced', 0)} synced, "
            f"{summary.get('documents_failed', 0)} failed, "
            f"{summary.get('documents_skipped', 0)} beyond depth limit",
            f"  Pages:       {summary.get('pages_written', 0)} files, "
            f"{summary.get('directories_created', 0)} directories",
            f"  Links:       {summary.get('links_rewritten', 0)} rewritten, "
            f"{summary.get('links_unresolved', 0)} unresolved",
            f"  Files:       {summary.get('files_updated', 0)} of "
            f"{summary.get('files_scanned', 0)} updated",
            f"  Output:      {summary.get('output_path', '')}",
            f"  Duration:    {summary.get('duration_formatted', '0s')}",
            "",
        ]

        documents = report.get('documents', [])
        if documents:
            sections.append("Documents:")
            sections.append("-" * 60)
            for document in documents:
                sections.append(
                    f"  {document.get('name')} ({document.get('document_id')}): "
                    f"{document.get('page_count', 0)} pages, depth {document.get('depth', 0)}"
                )
            sections.append("")

        errors = report.get('errors', [])
        if errors:
            sections.append(f"Errors ({len(errors)}):")
            sections.append("-" * 60)
            for error in errors[:20]:
                target = error.get('document_id') or error.get('file', '')
                sections.append(f"  [{error.get('phase')}] {target}: {error.get('error')}")
            if len(errors) > 20:
                sections.append(f"  ... and {len(errors) - 20} more")
            sections.append("")

        sections.append("=" * 60)
        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Sync report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")
