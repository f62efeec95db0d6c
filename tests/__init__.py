"""
Test Suite for Premium Watch

Includes:
- Unit tests for alignment, indicators and scoring
- Integration tests for the fetch-and-combine pipeline
- Report rendering tests
"""
