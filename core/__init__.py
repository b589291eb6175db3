"""
Core components shared by the SlotBook apps.

Currently the exception hierarchy and the DRF exception handler that renders it.
"""

__version__ = "1.0.0"
