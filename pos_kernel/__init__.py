"""
POS Kernel

Shared infrastructure for the purchasing engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Engine/session management and money column types
- Clock, workflow and collaborator abstractions
- Locked-row sequence counters
"""

__version__ = "0.1.0"
