"""
FastAPI application for the business directory.

This package contains the REST API for browsing and managing listings,
photo uploads, and spreadsheet bulk imports.
"""

__version__ = "1.0.0"
