"""CLI shim -- delegates to tiercompress.cli.main().

Usage:
    python compress_rules.py --report-only --data-dir ./data
    python compress_rules.py --regenerate --context-level abstract
"""

import sys

from tiercompress.cli import main

if __name__ == "__main__":
    sys.exit(main())
