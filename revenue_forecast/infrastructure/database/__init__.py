"""
Database Package - Infrastructure Layer

This package contains the SQL engine factory used by the observation source.
"""

from .sql_engine import create_sql_engine

__all__ = ["create_sql_engine"]
