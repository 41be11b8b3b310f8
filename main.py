#!/usr/bin/env python3
"""
Project-level CLI launcher.

Usage:
    python main.py <command> [options]
"""

from reconciler.cli.main import main


if __name__ == "__main__":
    raise SystemExit(main())
