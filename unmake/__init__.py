"""unmake - a minimal incremental build orchestrator for C-like projects.

This package discovers translation units in a source directory, recompiles
the stale ones, links the objects into a binary and can rebuild and relaunch
itself when its own definition changes.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
