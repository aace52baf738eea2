"""
Shared Core Module
==================

Event system, configuration and collaborator contracts.
"""

# Event System
from .event_bus import EventBus, EventPayload
from . import events

# Configuration
from .configuration import (
    ConfigManager,
    SystemConfig,
    get_config_manager,
    get_config,
    ValidationLevel,
)

# Collaborators
from .collaborators import (
    AddressBar,
    Canvas,
    DocumentLookup,
    DocumentService,
    EventTarget,
    GalleryLoader,
    HostFrame,
    SidePanels,
)

__all__ = [
    # Event System
    "EventBus",
    "EventPayload",
    "events",
    # Configuration
    "ConfigManager",
    "SystemConfig",
    "get_config_manager",
    "get_config",
    "ValidationLevel",
    # Collaborators
    "AddressBar",
    "Canvas",
    "DocumentLookup",
    "DocumentService",
    "EventTarget",
    "GalleryLoader",
    "HostFrame",
    "SidePanels",
]
