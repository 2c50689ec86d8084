"""
Asset Kernel - movement ledger and balance engine

An append-only record of asset movements across bases with:
- Typed movement records (purchase, transfer legs, assignment, expenditure)
- Role/base authorization decided before anything is persisted
- Atomic two-leg transfers
- Balances derived from history at query time (no stored balances)
"""

__version__ = "0.1.0"
