"""
HTTP surface.
"""

from shopflow.api._auth import Authenticator, StaticTokens
from shopflow.api._services import Services, build_services, build_live_services
from shopflow.api.app import create_app

__all__ = (
    "Authenticator",
    "StaticTokens",
    "Services",
    "build_services",
    "build_live_services",
    "create_app",
)
