"""
Audiobook Reconciler
====================
Builds canonical book records from scanned chapters, migrating state from
the legacy database at most once per book.
"""

__version__ = "0.1.0"
