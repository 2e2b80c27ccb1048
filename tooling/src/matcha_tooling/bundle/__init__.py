"""Bundle assemblers: iOS static framework (directory tree) and Android archive (.aar)."""

from .aar import assemble as assemble_aar
from .framework import BundleConfig, ModuleManifest
from .framework import assemble as assemble_framework

__all__ = [
    "BundleConfig",
    "ModuleManifest",
    "assemble_aar",
    "assemble_framework",
]
