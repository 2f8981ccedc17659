"""Cross-agent coordination through the shared task ledger."""

from .ledger import LedgerState, SharedTaskLedger

__all__ = ["LedgerState", "SharedTaskLedger"]
