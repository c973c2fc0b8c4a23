"""
Expense Tracker - Source Package

Backend for a single-user expense tracker: expenses with category,
amount, date and payment method, a paid/pending flag, and a manually
edited account balance used to project upcoming shortfalls.

DESIGN PRINCIPLES:
1. Amounts are Decimal end to end, never float
2. Storage layer is swappable behind one interface
3. Backend selection happens once, at startup
4. Backend failures never leak details to clients
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
