"""
Transport layer for command execution.

Provides abstraction for:
- Local command execution (optionally through sudo)
- File reads and writes on the provisioned host
"""

from wpstack.transport.base import Transport, NullTransport
from wpstack.transport.local import LocalTransport

__all__ = ["Transport", "NullTransport", "LocalTransport"]
