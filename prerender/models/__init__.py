"""
Data Models
===========

Render jobs, page results and server state enums.
"""
