from __future__ import annotations

from .base import Reporter


class SilentReporter(Reporter):
    """Keeps task bookkeeping but prints nothing (``--reporter silent``)."""
