"""HTTP service for frametrace.

A FastAPI application exposing the conversion operations as JSON endpoints.
"""

from frametrace.api.server import TextRequest, create_app

__all__ = ["TextRequest", "create_app"]
