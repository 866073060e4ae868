"""
Data module for BTC price history ingestion and management.

This module provides:
- Yahoo Finance client for fetching daily OHLCV data
- Data loading and saving utilities
- Data validation and cleaning
- Chronological train/test splitting
"""

from .ingestion import YahooFinanceClient, DataIngestion
from .loader import DataLoader
from .validator import DataValidator
from .splitter import ChronologicalSplit, chronological_split

__all__ = [
    "YahooFinanceClient",
    "DataIngestion",
    "DataLoader",
    "DataValidator",
    "ChronologicalSplit",
    "chronological_split"
]
