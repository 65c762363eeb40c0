#!/usr/bin/env python3
"""
CLI entry point for travelogue.cli module.

This allows running: python -m travelogue.cli
"""

from .main import cli

if __name__ == "__main__":
    cli()
