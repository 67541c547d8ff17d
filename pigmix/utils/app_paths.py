from __future__ import annotations

from pathlib import Path

from .debug_logger import log_path_search


def _pkg_root() -> Path:
    """Return the pigmix package directory"""
    return Path(__file__).resolve().parent.parent


def resolve_data_path(*parts: str) -> Path:
    """Resolve a data file path with unified search order.

    Search priority:
      1) Package data: pigmix/<parts>
      2) Current working directory (fallback): ./<parts>

    Raises FileNotFoundError if none exists.
    """
    candidates = [
        _pkg_root().joinpath(*parts),
        Path.cwd().joinpath(*parts),
    ]
    for p in candidates:
        if p.exists():
            log_path_search(f"resolve_data_path({'/'.join(parts)})", candidates, str(p), "app_paths")
            return p
    log_path_search(f"resolve_data_path({'/'.join(parts)})", candidates, None, "app_paths")
    raise FileNotFoundError("Data path not found: " + "/".join(parts))
