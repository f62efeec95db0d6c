"""
Data Ingestion Module

Handles fetching and aligning data from external sources:
- EastMoney kline API for exchange closing prices
- EastMoney fund pages for official NAV history
"""

__version__ = "0.1.0"
