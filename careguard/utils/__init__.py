"""
Utility modules for the catalog service
"""
from .config_loader import AppSettings, load_settings
from .seed_loader import SeedCatalog, load_seed_catalog

__all__ = [
    'AppSettings',
    'load_settings',
    'SeedCatalog',
    'load_seed_catalog',
]
