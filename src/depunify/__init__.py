"""depunify: Feature unification analysis for resolved package dependency graphs."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
