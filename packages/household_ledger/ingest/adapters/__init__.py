"""Statement format adapters, one module per bank export."""

from .alpha_bank_csv import AlphaBankCsvAdapter
from .generic_pdf import GenericPdfAdapter
from .nbg_tsv import NbgTsvAdapter
from .nbg_xlsx import NbgXlsxAdapter
from .payzy_pdf import PayzyPdfAdapter
from .revolut_csv import RevolutCsvAdapter
from .winbank_csv import WinbankCsvAdapter

__all__ = [
    "AlphaBankCsvAdapter",
    "GenericPdfAdapter",
    "NbgTsvAdapter",
    "NbgXlsxAdapter",
    "PayzyPdfAdapter",
    "RevolutCsvAdapter",
    "WinbankCsvAdapter",
]
