from .blame_service import BlameAttributionEngine
from .changeset_resolver import ChangeSetResolver
from .coordinator import AttributionCoordinator, PassState
from .highlight_store import HighlightDataStore
from .history_index import CommitHistoryIndex
from .ignore_filter import IgnoreFilter
from .report_service import ReportService
from .scheduler import ConcurrencyScheduler


__all__ = [
    'AttributionCoordinator',
    'BlameAttributionEngine',
    'ChangeSetResolver',
    'CommitHistoryIndex',
    'ConcurrencyScheduler',
    'HighlightDataStore',
    'IgnoreFilter',
    'PassState',
    'ReportService',
]
