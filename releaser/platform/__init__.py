"""Platform abstraction layer."""

from .files import atomic_write_text, remove_tree
from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from .process import CommandResult, ProcessError, run, run_status

__all__ = [
    # files
    "atomic_write_text",
    "remove_tree",
    # http
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # process
    "CommandResult",
    "ProcessError",
    "run",
    "run_status",
]
