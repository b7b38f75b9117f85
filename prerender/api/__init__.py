"""
HTTP API
========

FastAPI application that classifies every inbound request as rejected,
static file or render job.
"""
