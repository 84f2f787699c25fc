"""Item ledger exceptions"""


class LedgerError(Exception):
    """Base class for item ledger errors"""
    pass


class ColumnRejectedError(LedgerError):
    """Raised when a custom column cannot be added; the ledger is left unchanged"""

    def __init__(self, display_name: str, reason: str):
        self.display_name = display_name
        self.reason = reason
        super().__init__(f"Column {display_name!r} rejected: {reason}")
