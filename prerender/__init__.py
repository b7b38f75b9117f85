"""
Prerender Server
================

An HTTP dispatcher that renders single-page application routes to static HTML
for crawlers by feeding requests, one at a time, through a headless browser.

This package provides:
- FastAPI catch-all endpoint classifying render and static-file requests
- Bounded FIFO job queue with admission control
- Single-slot dispatch to a Playwright rendering engine
- Lifecycle coordination between the HTTP listener and the renderer
"""

__version__ = "1.0.0"
__author__ = "Prerender Server Team"
