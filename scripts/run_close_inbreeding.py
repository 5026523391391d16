#!/usr/bin/env python3
"""Systems of close inbreeding.

F under selfing, full-sib, half-sib and double-first-cousin mating;
the full-sib recurrence is checked against coancestry on a pedigree.

Usage:
    python scripts/run_close_inbreeding.py [--set KEY=VALUE ...] [--output-dir DIR]
"""

import sys
from pathlib import Path

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from popgen_lab.cli import main

if __name__ == "__main__":
    sys.exit(main(["close_inbreeding"] + sys.argv[1:]))
