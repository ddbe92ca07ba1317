"""
indexsync: Resilient document synchronization against a remote indexing service.

A small HTTP client that pushes and retrieves documents using short-lived
session tokens, with bounded retries and transparent re-authentication.
"""

__version__ = "0.1.0"
