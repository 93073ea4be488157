"""
HTTP status API for the relay (health, status, ping).
"""

from .app import create_app
from .server import run_api_server

__all__ = ["create_app", "run_api_server"]
