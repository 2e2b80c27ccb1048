"""Cross-compile a Go package for mobile architectures and bundle it (.framework / .aar)."""

__version__ = "0.1.0"
