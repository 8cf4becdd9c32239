"""
publik-installer - Bootstrap a Publik (Combo and w.c.s.) development environment
"""

__version__ = "0.1.0"

from .core import PublikInstaller
from .errors import InstallerError

__all__ = ["PublikInstaller", "InstallerError"]
