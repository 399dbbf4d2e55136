"""txledger - client ledger reconciliation from an ordered transaction stream."""

__version__ = "0.1.0"
