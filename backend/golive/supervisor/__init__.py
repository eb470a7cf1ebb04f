"""
golive Supervisor Package.

Builds, runs and replaces the watched Go program.
Requires Python 3.11+.
"""

from golive.supervisor.commands import resolve_entry
from golive.supervisor.process import ProcessSupervisor

__all__ = ["ProcessSupervisor", "resolve_entry"]
