"""
Core Business Logic
==================

Job queue, dispatch and completion, the rendering engine and the static file proxy.
"""
