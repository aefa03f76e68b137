"""GitHub store access shared by the sync engine and the MCP server."""

from . import client
from .async_utils import gather_limited, run_sync, run_sync_limited

__all__ = ["client", "gather_limited", "run_sync", "run_sync_limited"]
