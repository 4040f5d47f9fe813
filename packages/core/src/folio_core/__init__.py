"""
Folio core

Identity, error taxonomy, persistence contract and the shared tree model used by
the content and export services.
"""

__version__ = "0.1.0"
