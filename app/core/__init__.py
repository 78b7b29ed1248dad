"""
Application Core Components
Provides centralized access to core functionality
"""
from .config import settings
from .logging import log_manager

__all__ = [
    'settings',
    'log_manager',
]
