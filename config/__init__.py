"""
Configuration package for Housing Contact Scraper.
"""

from config.settings import *
from config.keywords import KeywordTables, DEFAULT_TABLES

__all__ = ['settings', 'keywords', 'KeywordTables', 'DEFAULT_TABLES']
