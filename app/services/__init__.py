# Business logic services
from app.services.aggregator import aggregate
from app.services.extractor import CsvExtractor, build_analysis
from app.services.ledger_service import LedgerService, get_ledger
from app.services.workflow import build_entry, request_placement, request_edit

__all__ = [
    'aggregate',
    'CsvExtractor',
    'build_analysis',
    'LedgerService',
    'get_ledger',
    'build_entry',
    'request_placement',
    'request_edit',
]
