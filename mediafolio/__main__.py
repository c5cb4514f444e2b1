"""
Main entry point for running the package as a module.

Usage:
    python -m mediafolio serve
    python -m mediafolio thumbnail photo.jpg
    python -m mediafolio validate https://example.com/photo.jpg
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
