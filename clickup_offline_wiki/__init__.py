"""ClickUp Offline Wiki

Mirrors ClickUp documents into folders of markdown files and rewrites links
between ClickUp pages into relative links between the exported files.

Basic Usage:
    1. Copy config.yaml.example to config.yaml
    2. Export your ClickUp API token as CLICKUP_API_KEY
    3. Run: clickup-wiki https://app.clickup.com/<workspace>/v/dc/<document>

Example Configuration (config.yaml):
    clickup:
        api_key: ${CLICKUP_API_KEY}

    sync:
        output_path: ".clickup"
        max_page_fetch_depth: 3
"""

__version__ = "1.0.0"
__description__ = "Offline markdown mirror of ClickUp documents with working local links"

from .models import (
    CatalogEntry,
    DocumentNode,
    LinkType,
    PageMappingEntry,
    PageNode,
    ParsedLink,
    TransformResult
)
from .catalog import PageCatalog
from .config_loader import ConfigLoader, get_nested
from .logger import setup_logging, ProgressTracker, log_section, log_config
from .converters import LinkParser, LinkPatternMatcher, LinkTransformer
from .exporters import InvalidNodeNameError, MaterializationError, TreeMaterializer
from .orchestrator import SyncError, SyncOrchestrator

__all__ = [
    '__version__',
    '__description__',

    # Core data models
    'CatalogEntry',
    'DocumentNode',
    'LinkType',
    'PageMappingEntry',
    'PageNode',
    'ParsedLink',
    'TransformResult',

    # Link handling and materialization
    'PageCatalog',
    'LinkParser',
    'LinkPatternMatcher',
    'LinkTransformer',
    'TreeMaterializer',
    'MaterializationError',
    'InvalidNodeNameError',

    # Orchestration
    'SyncError',
    'SyncOrchestrator',

    # Configuration
    'ConfigLoader',
    'get_nested',

    # Logging
    'setup_logging',
    'ProgressTracker',
    'log_section',
    'log_config',
]
