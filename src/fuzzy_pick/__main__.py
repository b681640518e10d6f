"""fuzzy-pick entry point.

Supports: python -m fuzzy_pick
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
