from __future__ import annotations

"""
Infrastructure layer (no sync semantics).

Concrete adapters behind the application ports: the remote gateway (HTTP and
in-memory), view preference storage, and notice sinks.
"""

__all__ = [
    "config",
    "gateway",
    "notifications",
    "preferences",
]
