"""``python -m chemevln``: run the example evolution; a failed run exits non-zero."""

import sys

from .driver import main

if __name__ == "__main__":
    sys.exit(0 if main() >= 0 else 1)
