"""Centralized version management for the investment API."""

from pathlib import Path

# Path: _version.py -> invest_api -> project root
_version_file = Path(__file__).parent.parent / "VERSION"
VERSION = _version_file.read_text().strip() if _version_file.exists() else "0.0.0"
