#!/usr/bin/env python3
"""Change of base population.

Re-expresses tabulated inbreeding coefficients against a new base, and
rebases pedigree F in a closed random-mating population.

Usage:
    python scripts/run_base_change.py [--set KEY=VALUE ...] [--output-dir DIR]
"""

import sys
from pathlib import Path

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from popgen_lab.cli import main

if __name__ == "__main__":
    sys.exit(main(["base_change"] + sys.argv[1:]))
