"""Project directory support — finds and loads .ratecard/ configuration."""

from __future__ import annotations

from pathlib import Path

from ratecard.config import Settings, load_settings


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start (default: cwd) looking for .ratecard/ directory."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / ".ratecard").is_dir():
            return parent
    return None


def get_project_config_path(project_root: Path) -> Path | None:
    """Return the path to .ratecard/config.yaml if it exists."""
    config_path = project_root / ".ratecard" / "config.yaml"
    if config_path.exists():
        return config_path
    return None


def load_project_settings(start: Path | None = None) -> Settings:
    """Settings from the enclosing project, or defaults outside a project."""
    root = find_project_root(start)
    if root is None:
        return Settings()
    return load_settings(get_project_config_path(root))
