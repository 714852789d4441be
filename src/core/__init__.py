"""
Core domain models, integer math primitives, and contracts.

This module contains the foundational building blocks of the share ledger
that are independent of the value-transport layer.
"""
