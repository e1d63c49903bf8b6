"""External editor launching."""

from .launcher import ExternalProcessLauncher, LaunchHandle

__all__ = [
    "ExternalProcessLauncher",
    "LaunchHandle",
]
