"""
ASGI entry point.

Run with:
    uvicorn asgi:app
"""

from app import create_app

app = create_app()
