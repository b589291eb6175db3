"""
SlotBook scheduling algorithms.

The algorithms here are framework-free: they operate on plain value objects and
never read storage or the wall clock, which keeps them safe to run in parallel
and trivial to test.

Subpackages:
- availability: timezone conversion, interval arithmetic and slot generation
"""

__version__ = "1.0.0"
