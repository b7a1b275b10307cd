"""
API Services - work the routers hand off to FastAPI background tasks.
"""

from .auto_assign_runner import run_auto_assign_task

__all__ = ["run_auto_assign_task"]
