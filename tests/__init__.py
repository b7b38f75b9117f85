"""
Test Suite
==========

Test suite matching the prerender/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: HTTP-level tests against the FastAPI application
"""
