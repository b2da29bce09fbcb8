"""
Core module initialization.
Exports configuration, logging and credential utilities.
"""

from delivery_app.core.config import get_settings, Settings, EnvironmentMode, PushDispatchMode

__all__ = ["get_settings", "Settings", "EnvironmentMode", "PushDispatchMode"]
