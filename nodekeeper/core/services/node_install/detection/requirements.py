"""
L3 Detection — Hardware requirement check.

Read-only probes: /proc/cpuinfo, /proc/meminfo, free disk space on /.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

MIN_CPU_CORES = 4
MIN_RAM_MB = 16000
MIN_DISK_GB = 200

# Shown alongside the check; bandwidth cannot be probed locally
REQUIREMENTS_TABLE: list[tuple[str, str]] = [
    ("CPU", "4 Cores"),
    ("RAM", "16 GB"),
    ("Disk", "200 GB"),
    ("Bandwidth", "25 MBit/s"),
]


def _cpu_cores() -> int:
    return os.cpu_count() or 0


def _ram_mb(meminfo: Path = Path("/proc/meminfo")) -> int:
    try:
        for line in meminfo.read_text().splitlines():
            if line.startswith("MemTotal:"):
                return int(line.split()[1]) // 1024
    except (OSError, ValueError, IndexError):
        pass
    return 0


def _disk_gb(path: str = "/") -> float:
    return shutil.disk_usage(path).free / 1024 / 1024 / 1024


def check_system_requirements(
    *,
    cpu_cores: int | None = None,
    ram_mb: int | None = None,
    disk_gb: float | None = None,
) -> dict:
    """Compare this host against the validator minimums.

    Values may be passed in (tests); otherwise they are probed.

    Returns::

        {"ok": True/False, "cpu_cores": N, "ram_mb": N, "disk_gb": N,
         "failures": ["Insufficient RAM: ..."]}
    """
    cpu = _cpu_cores() if cpu_cores is None else cpu_cores
    ram = _ram_mb() if ram_mb is None else ram_mb
    disk = _disk_gb() if disk_gb is None else disk_gb

    failures: list[str] = []
    if cpu < MIN_CPU_CORES:
        failures.append(
            f"Insufficient CPU cores: {cpu} cores available, but {MIN_CPU_CORES} cores required."
        )
    if ram < MIN_RAM_MB:
        failures.append(f"Insufficient RAM: {ram} MB available, but {MIN_RAM_MB} MB required.")
    if disk < MIN_DISK_GB:
        failures.append(
            f"Insufficient disk space: {disk:.0f} GB available, but {MIN_DISK_GB} GB required."
        )

    return {
        "ok": not failures,
        "cpu_cores": cpu,
        "ram_mb": ram,
        "disk_gb": round(disk, 1),
        "failures": failures,
    }
