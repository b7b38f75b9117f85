"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Server, queue, static-file and renderer settings
- logging: Structured logging configuration and the category logger
"""
