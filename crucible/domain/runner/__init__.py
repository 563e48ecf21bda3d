"""
Test runner command domain module
"""
from .commands import CommandGenerator, fetch_install_script

__all__ = ["CommandGenerator", "fetch_install_script"]
