"""Maintenance job agent package.

Hosts the periodic reconciliation and cleanup jobs of the collaboration
backend together with the runtime that schedules and executes them.
"""

__all__: list[str] = []
