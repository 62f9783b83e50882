"""leakwatch - multi-source infringement detection engine."""

from leakwatch.version import __version__

__all__ = ["__version__"]
