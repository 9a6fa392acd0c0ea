"""
Household Ledger - Source Package

A two-person household budget ledger: recurring costs, budgets, income
and savings for a main and a partner persona who share some accounts and
split some costs 50/50.

DESIGN PRINCIPLES:
1. Split shares are derived, never typed in
2. Every family write is one transaction
3. All money is integer cents
4. The view is always explicit
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
