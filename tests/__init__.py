"""
Test suite for share-ledger

Contains:
- tests/unit/          : Unit tests for math, domain models, contracts and the ledger
"""
