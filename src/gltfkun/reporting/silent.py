from __future__ import annotations

from .base import Reporter


class SilentReporter(Reporter):
    """Tracks tasks but renders nothing; what library callers get by default."""
