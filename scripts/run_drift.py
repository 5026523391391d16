#!/usr/bin/env python3
"""Random genetic drift.

Allele-frequency walks in replicate lines of size N, absorbed at loss
or fixation, against the expected variance pq[1 - (1 - 1/2N)^t] and
heterozygosity decay.

Usage:
    python scripts/run_drift.py [--set KEY=VALUE ...] [--output-dir DIR]
"""

import sys
from pathlib import Path

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from popgen_lab.cli import main

if __name__ == "__main__":
    sys.exit(main(["drift"] + sys.argv[1:]))
