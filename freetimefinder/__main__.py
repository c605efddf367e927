#!/usr/bin/env python3
"""
Convenience entry point for running freetimefinder as a module.

Usage: python -m freetimefinder [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
