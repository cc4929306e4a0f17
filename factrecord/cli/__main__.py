"""
factrecord CLI entry point.

Usage:
    python -m factrecord.cli audit <dump>
    python -m factrecord.cli show <dump> <fact_id>
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())
