"""
Centralized settings and path configuration for the invoice pricing tool.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CATALOG_ENV = 'INVOICE_PRICING_CATALOG'
CURRENCY_ENV = 'INVOICE_PRICING_CURRENCY'


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists() or (parent / 'items_catalog.csv').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Input files
    items_export: Path

    # Output files
    item_catalog: Path
    build_report: Path

    # Money
    currency: str = 'PKR'
    money_places: int = 2

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        catalog_override = os.environ.get(CATALOG_ENV)
        item_catalog = Path(catalog_override) if catalog_override else root / 'items_catalog.csv'

        return cls(
            project_root=root,
            items_export=root / 'items_export.csv',
            item_catalog=item_catalog,
            build_report=root / 'src' / 'invoice_pricing' / 'data' / 'outputs' / 'build_report.json',
            currency=os.environ.get(CURRENCY_ENV, 'PKR'),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
