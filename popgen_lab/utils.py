"""Utility functions for popgen-lab.

Run metadata and timing helpers used by the exercise scripts.
"""

from __future__ import annotations

import hashlib
import json
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generator

import yaml


def config_hash(config_dict: Dict[str, Any]) -> str:
    """SHA-256 of a config dict, via its canonical YAML dump."""
    text = yaml.safe_dump(config_dict, sort_keys=True)
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def write_run_metadata(
    path: str | Path,
    exercise: str,
    config_dict: Dict[str, Any],
    seed: int,
    extra: Dict[str, Any] | None = None,
) -> Path:
    """Write a JSON sidecar describing how a set of outputs was produced."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    meta = {
        'exercise': exercise,
        'seed': seed,
        'config_sha256': config_hash(config_dict),
        'created': datetime.now().isoformat(timespec='seconds'),
    }
    if extra:
        meta.update(extra)
    with open(path, 'w') as f:
        json.dump(meta, f, indent=2)
    return path


@contextmanager
def timer(label: str = "") -> Generator[None, None, None]:
    """Simple context-manager timer. Prints elapsed time on exit."""
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    if label:
        print(f"[{label}] {elapsed:.3f}s")
    else:
        print(f"Elapsed: {elapsed:.3f}s")
