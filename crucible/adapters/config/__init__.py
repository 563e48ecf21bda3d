"""
Configuration adapter
"""
from .loader import ConfigLoader, Collection, CrucibleConfig, local_config_path

__all__ = ["ConfigLoader", "Collection", "CrucibleConfig", "local_config_path"]
