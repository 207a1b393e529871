"""
Test suite for qvault

Contains:
- tests/unit/          : Unit tests for individual components and the vault facade
"""
