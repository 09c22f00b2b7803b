from __future__ import annotations

import os
import platform
from datetime import datetime, timezone

PROG_NAME = "phylipkit"


def now_utc_iso() -> str:
    fixed = os.environ.get("PHYLIPKIT_FIXED_TIMESTAMP_UTC")
    if fixed:
        return fixed
    return datetime.now(tz=timezone.utc).isoformat()


def get_memtotal() -> int | None:
    """Physical memory in bytes, or ``None`` where the OS does not say."""
    try:
        return int(os.sysconf("SC_PAGE_SIZE")) * int(os.sysconf("SC_PHYS_PAGES"))
    except (AttributeError, ValueError, OSError):
        return None


def get_system_metadata() -> dict[str, object]:
    return {
        "build_timestamp_utc": now_utc_iso(),
        "platform": platform.platform(),
        "system": platform.system(),
        "machine": platform.machine(),
        "python_version": platform.python_version(),
        "cpu_count": os.cpu_count(),
        "memtotal_bytes": get_memtotal(),
    }


def program_header(version: str) -> str:
    """One-line banner: name, version and architecture, RAM, cores."""
    arch = f"{platform.system().lower()}_{platform.machine() or 'unknown'}"
    memtotal = get_memtotal() or 0
    return (
        f"{PROG_NAME} v{version}_{arch}, {memtotal / 1024.0 ** 3:.0f}GB RAM, "
        f"{os.cpu_count() or 1} cores"
    )
