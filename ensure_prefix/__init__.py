"""ensure_prefix - check that workspace sources start with a required prefix."""

__version__ = "0.1.0"
