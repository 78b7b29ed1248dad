"""
API v1 package
"""
from .router import create_router

__all__ = ["create_router"]
