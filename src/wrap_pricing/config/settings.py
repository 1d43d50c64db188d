"""
Centralized settings and path configuration for the pricing tool.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    # Walk up from this file to find the project root
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Catalog store (JSON document)
    data_file: Path

    # Where quote exports are written
    export_dir: Path

    # Presentation
    currency: str = 'RON'
    price_decimals: int = 2

    # Surfaces may insist on a lamination material before calculating
    require_lamination: bool = False

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_file = os.environ.get('WRAP_PRICING_DATA_FILE')
        export_dir = os.environ.get('WRAP_PRICING_EXPORT_DIR')

        return cls(
            project_root=root,
            data_file=Path(data_file) if data_file else root / 'data' / 'catalog.json',
            export_dir=Path(export_dir) if export_dir else root / 'exports',
            currency=os.environ.get('WRAP_PRICING_CURRENCY', 'RON'),
            require_lamination=_env_flag('WRAP_PRICING_REQUIRE_LAMINATION'),
            log_level=os.environ.get('WRAP_PRICING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
