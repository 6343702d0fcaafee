"""
Household Manager - Source Package

Tracks the day-to-day records of one household: things missing at home,
the shopping list, bills and shared expenses.

DESIGN PRINCIPLES:
1. Presentation only ever talks to the data-access facade
2. Storage backends are interchangeable (local file vs. remote documents)
3. The subscription view is the single source of truth
4. Bad user input is ignored, not crashed on
5. Every mutation is logged
"""

__version__ = "1.0.0"
__author__ = "Household Manager Team"
