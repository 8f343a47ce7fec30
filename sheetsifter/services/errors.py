from __future__ import annotations

"""Engine-level exceptions.

Configuration errors fail fast, before any row is processed, and carry a single
descriptive message meant to be shown to the user verbatim.
"""


class ConfigurationError(Exception):
    """Selections cannot drive a reconciliation (missing key/value roles, no targets...)."""
    pass


class AlignmentError(ConfigurationError):
    """Key and value columns of one worksheet do not share the same row count."""
    pass
