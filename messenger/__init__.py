"""
Real-time messenger backend: REST API, WebSocket relay and passkey login,
all backed by process memory.
"""

__version__ = "3.0.0"
