"""Domain layer for ledgerline application.

Services are imported lazily: the database layer imports domain entities, so
importing services here eagerly would create a cycle.
"""

_SERVICES = {
    "AccountService": "ledgerline.domain.account",
    "CategoryService": "ledgerline.domain.category",
    "CSVFormatService": "ledgerline.domain.csv_format",
    "CSVImportService": "ledgerline.domain.csv_import",
    "ExportService": "ledgerline.domain.export",
    "ImportBatchService": "ledgerline.domain.import_batch",
    "ReconciliationService": "ledgerline.domain.reconciliation",
    "RuleService": "ledgerline.domain.rules",
    "TaxYearLockService": "ledgerline.domain.tax_year_lock",
    "TransactionService": "ledgerline.domain.transaction",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
