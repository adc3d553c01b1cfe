#!/usr/bin/env python3
"""
ClickUp Offline Wiki - Command Line Interface

Mirrors ClickUp documents into folders of markdown files, following links to
other documents and rewriting ClickUp links into relative file links.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config_loader import ConfigLoader, DEFAULT_CONFIG_PATH, get_nested
from .exporters import MaterializationError
from .fetchers import FetcherError
from .logger import log_config, log_section, setup_logging
from .orchestrator import SyncError, SyncOrchestrator, SyncReport


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='clickup-wiki',
        description="Sync ClickUp documents to local markdown files with working relative links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync a document (and the documents it links to)
  clickup-wiki https://app.clickup.com/1234/v/dc/abc-123

  # Start from a page URL, write to ./wiki
  clickup-wiki https://app.clickup.com/1234/v/dc/abc-123/abc-456 --output ./wiki

  # Only the given document, no linked documents
  clickup-wiki https://app.clickup.com/1234/v/dc/abc-123 --depth 0

  # Sync from JSON dumps of the pages endpoint
  clickup-wiki https://app.clickup.com/1234/v/dc/abc-123 --mode local --data-dir ./.clickup-data

  # Debug run with catalog dump and verbose logging
  clickup-wiki https://app.clickup.com/1234/v/dc/abc-123 --debug -vv
        """
    )

    parser.add_argument(
        'urls',
        nargs='+',
        metavar='URL',
        help='ClickUp document or page URL to sync'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '-c', '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})'
    )

    parser.add_argument(
        '-k', '--api-key',
        type=str,
        help='ClickUp API key (overrides clickup.api_key)'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        help='Output directory (default: .clickup)'
    )

    parser.add_argument(
        '-d', '--depth',
        type=int,
        help='Maximum depth of linked documents to follow, -1 for unlimited (default: 3)'
    )

    parser.add_argument(
        '--mode',
        choices=['api', 'local'],
        help='Fetch documents from the API or from local JSON dumps (default: api)'
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        help='Directory holding <document_id>.json dumps for --mode local'
    )

    parser.add_argument(
        '--debug',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Write catalog-debug.json to the output directory'
    )

    parser.add_argument(
        '--progress',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Show progress bars'
    )

    parser.add_argument(
        '--report-path',
        type=str,
        help='Write the sync report as JSON to this file'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def run_sync(config: dict, urls: List[str], logger: logging.Logger) -> int:
    """Run the sync and print the report."""
    report_generator = SyncReport(logger)

    try:
        orchestrator = SyncOrchestrator(config, logger=logger)
        report = orchestrator.run(urls)
    except (SyncError, FetcherError) as e:
        logger.error(f"Sync failed: {e}")
        return 1
    except MaterializationError as e:
        logger.error(f"Failed to write documents: {e}")
        return 1
    except OSError as e:
        logger.error(f"File system error: {e}")
        return 1

    print(report_generator.format_console_report(report))

    report_path = get_nested(config, 'sync.report_path')
    if report_path:
        report_generator.export_json_report(report, report_path)

    if report['summary']['total_errors'] > 0:
        logger.warning(f"Sync finished with {report['summary']['total_errors']} errors")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        logger = setup_logging(verbosity=args.verbose, log_file=args.log_file)

        log_section("ClickUp Offline Wiki")
        logger.info(f"Version: {__version__}")

        # A missing default config file is fine, an explicit one must exist
        allow_missing = args.config == DEFAULT_CONFIG_PATH
        logger.info(f"Loading configuration from {args.config}")
        config = ConfigLoader.load(args.config, allow_missing=allow_missing)

        # CLI arguments take precedence
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        level = get_nested(config, 'logging.level')
        log_file = get_nested(config, 'logging.file')
        if level or log_file:
            logger = setup_logging(verbosity=args.verbose, log_file=log_file, level=level)

        log_config(config)

        return run_sync(config, args.urls, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nSync interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
