"""Run manifest helpers."""

from __future__ import annotations

import json
import os
import platform
import subprocess
import time
from pathlib import Path
from typing import Dict, Mapping

import numpy as np


def git_sha() -> str:
    """Commit of the working tree, or ``"unknown"`` outside a git checkout."""

    try:
        raw = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - git may be unavailable
        return "unknown"
    return raw.decode().strip()


def build_manifest(
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    network: Mapping[str, object] | None = None,
) -> Dict[str, object]:
    return {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": dict(config),
        "dataset": dict(dataset_provenance),
        "network": dict(network or {}),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
            "run_tag": os.environ.get("CHAINNET_RUN_TAG", ""),
        },
    }


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    network: Mapping[str, object] | None = None,
) -> str:
    """Write ``manifest.json`` recording what produced a run."""

    manifest = build_manifest(config=config, dataset_provenance=dataset_provenance, network=network)
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(manifest, indent=2))
    return str(target)


__all__ = ["git_sha", "build_manifest", "write_manifest"]
