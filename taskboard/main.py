"""
Name: ASGI entrypoint (taskboard.main)

Responsibilities:
  - Re-export the FastAPI app for ASGI servers (uvicorn taskboard.main:app)

Notes:
  - Keep it thin: no configuration or IO here.
"""

from taskboard.api.main import app

__all__ = ["app"]
