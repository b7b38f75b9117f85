"""
Rendering Engine
================

Renderer interface and the Playwright-backed implementation.
"""
