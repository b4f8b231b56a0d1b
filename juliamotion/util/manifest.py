import dataclasses
import json
import os
import platform
import subprocess
import sys
import time
from dataclasses import dataclass
from importlib import metadata
from typing import Any, Dict, Optional

PACKAGES = ["numpy", "Pillow", "opencv-python", "tqdm", "natsort", "svg.path"]


@dataclass(frozen=True)
class RunManifest:
    started_utc: str
    config: Dict[str, Any]
    python: Dict[str, Any]
    packages: Dict[str, str]
    git: Dict[str, Any]
    system: Dict[str, Any]
    result: Dict[str, Any]


def utc_iso(ts: Optional[float] = None) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(ts))


def git_commit() -> Optional[str]:
    try:
        r = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError):
        return None
    return r.stdout.strip() or None


def _pkg_version(name: str) -> Optional[str]:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def build_manifest(*, config: Dict[str, Any], result: Dict[str, Any], started_utc: str, commit: Optional[str]) -> RunManifest:
    pkgs = {name: v for name, v in ((n, _pkg_version(n)) for n in PACKAGES) if v}
    return RunManifest(
        started_utc=started_utc,
        config=config,
        python={"version": sys.version, "executable": sys.executable},
        packages=pkgs,
        git={"commit": commit},
        system={"platform": platform.platform(), "machine": platform.machine(), "cpus": os.cpu_count()},
        result=result,
    )


def write_manifest(path: str, manifest: RunManifest) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dataclasses.asdict(manifest), f, indent=2, sort_keys=True, default=str)
