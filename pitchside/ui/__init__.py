"""
UI package for Pitchside.

This package contains the Flask web server exposing the engine as a JSON API.
"""
from .web_app import create_app, run_web_app, WebAppState

__all__ = ["create_app", "run_web_app", "WebAppState"]
