"""
icalsync — Entry Point.

Single entry point: `python main.py -c CALENDAR_ID -f FEED` runs one sync.
"""

import sys

from icalsync.cli import main

if __name__ == "__main__":
    sys.exit(main())
