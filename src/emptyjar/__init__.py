"""Empty Jar: a weekly note ledger with offline sync."""

__version__ = "0.1.0"
