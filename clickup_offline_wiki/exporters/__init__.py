"""Exporters package for writing ClickUp document trees to markdown files."""

from .tree_materializer import (
    InvalidNodeNameError,
    MaterializationError,
    TreeMaterializer,
    find_all_markdown_files
)

__all__ = [
    'InvalidNodeNameError',
    'MaterializationError',
    'TreeMaterializer',
    'find_all_markdown_files'
]
