"""CLI entrypoint for the book statistics batch."""
from __future__ import annotations

import sys

from bookstats.cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
