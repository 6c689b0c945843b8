"""Adapters layer - Concrete implementations of ports.

This module contains implementations of the port interfaces,
connecting the resolver to external systems like:
- Location datasets (CSV files)
- Durable lookup caches (SQLite, PostgreSQL)
- In-process caching, metrics and clocks
"""
