"""
Elements Studio Shared Kernel
=============================

Architecture:
- core: EventBus, events, configuration, collaborator contracts
- domain: Navigation (fragment codec, folder chains), gallery filtering, models
- infrastructure: Document service adapters
"""

__version__ = "1.0.0"

__all__ = []
