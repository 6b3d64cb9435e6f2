"""
Cab Ledger - Source Package

Daily bookkeeping for a small taxi fleet: drivers submit their day's
income and expenses, the administrator reviews the numbers, manages
driver profiles and exports statements.

DESIGN PRINCIPLES:
1. Totals are always derived, never typed in
2. Storage layer is swappable (remote sheet or local fallback)
3. Every user action leaves a structured log line
"""

__version__ = "1.0.0"
__author__ = "Cab Ledger Team"
