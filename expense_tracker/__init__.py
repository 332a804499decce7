"""
Smart Expense Tracker - Source Package

A personal-finance dashboard: record expenses, watch today's total
against a daily limit, and see where the money went by category.

DESIGN PRINCIPLES:
1. Totals are computed, never stored
2. One "today" per render
3. An unknown limit is never a violated limit
4. Fail early on malformed data, never coerce to zero
5. Storage and auth are swappable
"""

__version__ = "1.0.0"
__author__ = "Smart Expense Tracker Team"
