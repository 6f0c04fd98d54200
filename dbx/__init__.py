"""
dbx - An interactive workbench for a remote query endpoint

This package provides a terminal session for sending ad-hoc queries to a single
HTTP endpoint, browsing the result set as a sortable table, inspecting rows,
replaying past queries and exporting results.
"""

__version__ = "0.1.0"

# Main API
from dbx.core.client import QueryClient
from dbx.core.session import SessionController

__all__ = ["__version__", "QueryClient", "SessionController"]
