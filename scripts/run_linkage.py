#!/usr/bin/env python3
"""Linkage disequilibrium.

Decay of D under recombination in finite populations, against
D_0(1 - c)^t and the drift-recombination level of r².

Usage:
    python scripts/run_linkage.py [--set KEY=VALUE ...] [--output-dir DIR]
"""

import sys
from pathlib import Path

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from popgen_lab.cli import main

if __name__ == "__main__":
    sys.exit(main(["linkage"] + sys.argv[1:]))
