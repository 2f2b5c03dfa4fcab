"""
Sonos Speaker Module

Lazily resolved speaker handles with cached topology and typed volume/mute control.
"""

__version__ = "1.0.0"

from .config import SpeakerConfig
from .exceptions import (
    ActionArgumentError,
    ConstructionError,
    InvalidServiceError,
    MalformedResponseError,
    RemoteActionError,
    SpeakerError,
    TopologyLookupError,
    TransportError,
)
from .models import DeviceDescriptor, Service, TopologyEntry
from .speaker import Speaker
from .transport import TransportHandle

__all__ = [
    "Speaker",
    "TransportHandle",
    "SpeakerConfig",
    "Service",
    "DeviceDescriptor",
    "TopologyEntry",
    "SpeakerError",
    "ConstructionError",
    "TransportError",
    "MalformedResponseError",
    "InvalidServiceError",
    "ActionArgumentError",
    "TopologyLookupError",
    "RemoteActionError",
]
