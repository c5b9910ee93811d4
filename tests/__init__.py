"""
Test suite for PQ Tracker.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_invoice_parser.py -v
"""
