"""
Core wpstack functionality.

Exports core abstractions and base classes.
"""

from wpstack.core.resource import Resource, Plan, Action, Change, Platform

__all__ = ["Resource", "Plan", "Action", "Change", "Platform"]
