"""
FCD Tracker - Source Package

Tracks a Foreign Currency Deposit account: currency exchange (FX),
gold buy/sell, interest accrual and transfers.

DESIGN PRINCIPLES:
1. Drafts are validated before anything is persisted
2. Stored entries are immutable
3. Dashboard numbers are always recomputed from the full entry list
4. Every step must be auditable
5. Storage and OCR backends are swappable
"""

__version__ = "1.0.0"
__author__ = "FCD Tracker Team"
