"""
CKAN Rating - crowd rating ledger for CKAN datasets.
"""

__version__ = "0.1.0"
