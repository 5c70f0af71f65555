"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn backend_sifa.api_server.app:app --host 0.0.0.0 --port 8000
"""

from backend_sifa.api_server.server import app, create_app

__all__ = ["app", "create_app"]
