"""Application package for the storefront product catalog backend.

This package exposes the service, repository, permission and model
modules used by the FastAPI application. It is intentionally
lightweight; individual modules contain the concrete implementations
and documentation.
"""
