"""
Data models and enums for the speaker control layer
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union
from urllib.parse import urlsplit

from .exceptions import InvalidServiceError, MalformedResponseError


class Service(Enum):
    """Device services that accept actions.

    Each member carries its UPnP service type and the URL prefix its
    control endpoint lives under.
    """
    TRANSPORT_CONTROL = ("transport-control", "AVTransport", "MediaRenderer/")
    RENDERING_CONTROL = ("rendering-control", "RenderingControl", "MediaRenderer/")
    CONTENT_DIRECTORY = ("content-directory", "ContentDirectory", "MediaServer/")
    ALARM_CLOCK = ("alarm-clock", "AlarmClock", "")

    def __init__(self, key: str, service_type: str, prefix: str):
        self.key = key
        self.service_type = service_type
        self.prefix = prefix

    @property
    def control_path(self) -> str:
        """Path of the SOAP control endpoint, e.g. /MediaRenderer/RenderingControl/Control"""
        return f"/{self.prefix}{self.service_type}/Control"

    @property
    def urn(self) -> str:
        return f"urn:schemas-upnp-org:service:{self.service_type}:1"

    @classmethod
    def parse(cls, value: Union["Service", str]) -> "Service":
        """Resolve a member from itself, its key or its UPnP service type"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value in (member.key, member.service_type):
                    return member
        raise InvalidServiceError(f"Unknown service: {value!r}")

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class DeviceDescriptor:
    """Identity read from /xml/device_description.xml"""
    name: str
    room: str
    model_name: Optional[str] = None
    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    software_version: Optional[str] = None
    udn: Optional[str] = None


def location_host(location: str) -> str:
    """
    Host part of a ZonePlayer ``location`` URL, exactly as written.

    Case is preserved and the port, credentials and IPv6 brackets are
    removed, so the result compares directly against a speaker address.

    Raises:
        ValueError: if the URL has no host or an unbalanced IPv6 literal
    """
    netloc = urlsplit(location).netloc.rpartition("@")[2]
    if netloc.startswith("["):
        end = netloc.find("]")
        if end == -1:
            raise ValueError(f"Invalid IPv6 URL: {location!r}")
        host = netloc[1:end]
    else:
        host = netloc.partition(":")[0]
    if not host:
        raise ValueError(f"No host in location {location!r}")
    return host


@dataclass(frozen=True)
class TopologyEntry:
    """One ZonePlayer element of /status/topology"""
    location: str
    host: str
    group: str
    coordinator: bool
    uuid: str
    name: Optional[str] = None

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, str],
                        name: Optional[str] = None) -> "TopologyEntry":
        """Create a TopologyEntry from ZonePlayer attributes"""
        try:
            location = attributes["location"]
            return cls(
                location=location,
                host=location_host(location),
                group=attributes["group"],
                coordinator=attributes["coordinator"] == "true",
                uuid=attributes["uuid"],
                name=name,
            )
        except KeyError as e:
            raise MalformedResponseError(f"ZonePlayer entry missing attribute {e}") from e
        except ValueError as e:
            raise MalformedResponseError(f"ZonePlayer entry has a bad location: {e}") from e
