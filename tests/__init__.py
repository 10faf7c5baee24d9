"""
Test suite for Stock Check.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_stock_ledger_service.py -v
"""
