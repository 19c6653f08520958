#!/usr/bin/env python3
"""
Main entry point for the Pitchside web application.

This script configures logging and launches the Flask-based web server.
"""
import os

from pitchside.ui.web_app import run_web_app
from pitchside.utils import setup_logging

if __name__ == "__main__":
    setup_logging(log_dir=os.environ.get("PITCHSIDE_LOG_DIR"),
                  log_to_file=bool(os.environ.get("PITCHSIDE_LOG_DIR")))
    project_root = os.path.dirname(os.path.abspath(__file__))
    run_web_app(static_folder=project_root)
