"""ASGI entry point: uvicorn staybook.api.app:app"""

from .factory import create_app

app = create_app()
