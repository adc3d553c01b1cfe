"""
Orchestrator package coordinating sync phases and report generation.

This package provides the SyncOrchestrator that materializes ClickUp documents
and rewrites their links, and the SyncReport used to present the outcome.
"""

from .sync_orchestrator import SyncError, SyncOrchestrator
from .sync_report import SyncReport

__all__ = ['SyncError', 'SyncOrchestrator', 'SyncReport']
