"""
Retail Banking Demo

Customer accounts, fund transfers and credit-score based loan
underwriting over a generic repository / unit of work store.
"""

__version__ = "1.0.0"
