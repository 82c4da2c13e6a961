"""
API MODULE
==========

REST API for contextCore.

Usage:
    uvicorn context_core.api.app:app --port 8432
"""

from .app import create_app, app

__all__ = ['create_app', 'app']
