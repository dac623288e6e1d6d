"""gant-harness entry point.

Supports: python -m gant_harness
"""

import sys

from .app import main

if __name__ == "__main__":
    sys.exit(main())
