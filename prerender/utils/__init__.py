"""
Utilities
=========

URL normalization and request helpers shared by the API and the renderer.
"""
