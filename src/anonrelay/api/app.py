"""ASGI entry point: uvicorn anonrelay.api.app:app"""

from .factory import create_app

app = create_app()
