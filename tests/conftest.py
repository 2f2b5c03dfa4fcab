"""
Shared fixtures: an in-memory document fetcher and a fake rendering-control device
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from sonos_speaker.exceptions import RemoteActionError, TransportError
from sonos_speaker.models import Service
from sonos_speaker.speaker import Speaker
from sonos_speaker.transport import TransportHandle
from sonos_speaker.xml_document import Document

ADDRESS = "192.168.1.20"
OTHER_ADDRESS = "192.168.1.21"

DESCRIPTION_XML = """<?xml version="1.0" encoding="utf-8" ?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
  <specVersion><major>1</major><minor>0</minor></specVersion>
  <device>
    <deviceType>urn:schemas-upnp-org:device:ZonePlayer:1</deviceType>
    <friendlyName>192.168.1.20 - Sonos One</friendlyName>
    <manufacturer>Sonos, Inc.</manufacturer>
    <modelNumber>S18</modelNumber>
    <modelName>Sonos One</modelName>
    <softwareVersion>56.0-76060</softwareVersion>
    <serialNum>00-0E-58-A0-00-01:E</serialNum>
    <UDN>uuid:RINCON_000E58A0000101400</UDN>
    <roomName>Kitchen</roomName>
  </device>
</root>
"""

TOPOLOGY_XML = """<?xml version="1.0" ?>
<ZPSupportInfo>
  <ZonePlayers>
    <ZonePlayer group="RINCON_000E58A0000101400:42" coordinator="true" wirelessmode="0"
        uuid="RINCON_000E58A0000101400"
        location="http://192.168.1.20:1400/xml/device_description.xml"
        version="56.0-76060" mincompatibleversion="55.0-00000">Kitchen</ZonePlayer>
    <ZonePlayer group="RINCON_000E58A0000101400:42" coordinator="false" wirelessmode="1"
        uuid="RINCON_000E58A0000201400"
        location="http://192.168.1.21:1400/xml/device_description.xml"
        version="56.0-76060" mincompatibleversion="55.0-00000">Living Room</ZonePlayer>
  </ZonePlayers>
  <MediaServers/>
</ZPSupportInfo>
"""

EMPTY_TOPOLOGY_XML = """<?xml version="1.0" ?>
<ZPSupportInfo>
  <ZonePlayers>
    <ZonePlayer group="RINCON_000E58A0000201400:7" coordinator="true"
        uuid="RINCON_000E58A0000201400"
        location="http://192.168.1.21:1400/xml/device_description.xml">Living Room</ZonePlayer>
  </ZonePlayers>
</ZPSupportInfo>
"""


class FakeFetcher:
    """Serves XML by request path and records every URL it was asked for"""

    def __init__(self, documents: Optional[Dict[str, Any]] = None):
        self.documents = dict(documents or {})
        self.calls: List[str] = []

    def get(self, url: str) -> Document:
        self.calls.append(url)
        path = "/" + url.split("/", 3)[3]
        payload = self.documents.get(path)
        if payload is None:
            raise TransportError(f"GET {url} returned status 404")
        if isinstance(payload, Exception):
            raise payload
        return Document.from_string(payload.encode("utf-8"))

    def count(self, path: str) -> int:
        return sum(1 for url in self.calls if url.endswith(path))


class FakeDevice:
    """Action invoker that behaves like a device's RenderingControl service"""

    def __init__(self, volume: int = 37, muted: bool = False):
        self.volume = volume
        self.muted = muted
        self.calls: List[Tuple[Service, str, List[Tuple[str, Any]]]] = []

    def call(self, service: Service, action: str,
             params: Sequence[Tuple[str, Any]]) -> Dict[str, str]:
        self.calls.append((service, action, list(params)))
        args = dict(params)
        if action == "GetVolume":
            return {"CurrentVolume": str(self.volume)}
        if action == "SetVolume":
            self.volume = max(0, min(100, args["DesiredVolume"]))
            return {}
        if action == "SetRelativeVolume":
            self.volume = max(0, min(100, self.volume + args["Adjustment"]))
            return {"NewVolume": str(self.volume)}
        if action == "GetMute":
            return {"CurrentMute": "1" if self.muted else "0"}
        if action == "SetMute":
            self.muted = bool(args["DesiredMute"])
            return {}
        raise RemoteActionError(service.service_type, action, 401, address=ADDRESS)


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "/xml/device_description.xml": DESCRIPTION_XML,
        "/status/topology": TOPOLOGY_XML,
    })


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def handle(fetcher, device):
    return TransportHandle(ADDRESS, fetcher=fetcher, invoker=device)


@pytest.fixture
def speaker(handle):
    return Speaker(handle)
