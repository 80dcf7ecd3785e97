"""Public interface for the ``household_ledger`` package.

This module exposes the pipeline entry points and public models as the stable
import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import IngestResult, ingest_statement, link, process, process_statement
from .categorize import Categorizer, ExternalCategorizer, ExternalCategorizerConfig
from .categories import CategoryCatalog, load_catalog
from .ingest import ADAPTERS, BANK_IDS, MalformedInputError, get_adapter
from .ingest.detect import detect_format, resolve_adapter
from .linking import link_own_account_transfers
from .models import (
    HouseholdMember,
    ProcessedMovement,
    RawMovement,
    TransferClassification,
    TransferType,
)
from .transfers import classify_transfer

__all__ = [
    # API
    "process_statement",
    "process",
    "ingest_statement",
    "link",
    "IngestResult",
    # Components
    "ADAPTERS",
    "BANK_IDS",
    "get_adapter",
    "detect_format",
    "resolve_adapter",
    "classify_transfer",
    "link_own_account_transfers",
    "Categorizer",
    "ExternalCategorizer",
    "ExternalCategorizerConfig",
    "CategoryCatalog",
    "load_catalog",
    # Models / types
    "RawMovement",
    "ProcessedMovement",
    "TransferClassification",
    "TransferType",
    "HouseholdMember",
    "MalformedInputError",
]
