"""
Speaker: a lazily resolved handle for one physical device
"""

import threading
from typing import Any, Dict, Mapping, Optional, Union

from . import actions
from .config import SpeakerConfig
from .exceptions import ConstructionError, SpeakerError, TopologyLookupError
from .logging_utils import get_logger, log_error, log_topology_resolved
from .models import DeviceDescriptor, Service, TopologyEntry, location_host
from .transport import Params, TransportHandle
from .xml_document import Document

logger = get_logger(__name__)

DESCRIPTION_PATH = "/xml/device_description.xml"
TOPOLOGY_PATH = "/status/topology"
MASTER_CHANNEL = "Master"


def _optional_text(device, name: str) -> Optional[str]:
    found = device.find_tag(name)
    return found.text if found is not None else None


class Speaker:
    """
    Interface to one speaker on the network.

    The device descriptor (name, room) is read when the Speaker is built.
    Group membership is read from the topology document the first time any
    of ``group``, ``is_coordinator`` or ``uuid`` is needed, then cached until
    :meth:`invalidate_topology` or :meth:`refresh_topology` is called.

    Args:
        target: An IP address, or a TransportHandle to share its cache
        config: Connection settings, used only when building a new handle

    Raises:
        ConstructionError: if the descriptor cannot be fetched or parsed
    """

    def __init__(self, target: Union[str, TransportHandle],
                 config: Optional[SpeakerConfig] = None):
        if isinstance(target, TransportHandle):
            handle = target
        else:
            handle = TransportHandle(target, config=config)

        try:
            descriptor = self._read_descriptor(handle)
        except SpeakerError as e:
            log_error(logger, handle.address, e, {"path": DESCRIPTION_PATH})
            raise ConstructionError(
                f"Could not read device description from {handle.address}: {e}") from e

        self._address = handle.address
        self.http = handle
        self.descriptor = descriptor
        self._topology: Optional[TopologyEntry] = None
        self._topology_lock = threading.Lock()

    @staticmethod
    def _read_descriptor(handle: TransportHandle) -> DeviceDescriptor:
        document = handle.fetch_document(DESCRIPTION_PATH)
        device = document.get_tag("device")
        return DeviceDescriptor(
            name=device.get_tag("friendlyName").text,
            room=device.get_tag("roomName").text,
            model_name=_optional_text(device, "modelName"),
            model_number=_optional_text(device, "modelNumber"),
            serial_number=_optional_text(device, "serialNum"),
            software_version=_optional_text(device, "softwareVersion"),
            udn=_optional_text(device, "UDN"),
        )

    @property
    def address(self) -> str:
        return self._address

    ip = address

    @property
    def name(self) -> str:
        """The "friendly" name reported by the speaker"""
        return self.descriptor.name

    @property
    def room(self) -> str:
        return self.descriptor.room

    def soap(self, service: Union[Service, str], action: str,
             params: Optional[Params] = None) -> Dict[str, str]:
        """Send an arbitrary action to this speaker"""
        return self.http.invoke_action(service, action, params)

    # Topology

    @property
    def topology_resolved(self) -> bool:
        return self._topology is not None

    def _resolve_topology(self) -> TopologyEntry:
        topology = self._topology
        if topology is not None:
            return topology

        with self._topology_lock:
            if self._topology is not None:
                return self._topology

            document = self.http.fetch_document(TOPOLOGY_PATH)
            try:
                entry = self._match_entry(document)
            except SpeakerError:
                # Let the next attempt see a fresh document
                self.http.invalidate(TOPOLOGY_PATH)
                raise

            self._set_entry(entry)
            return entry

    def _is_own_location(self, location: Optional[str]) -> bool:
        if not location:
            return False
        try:
            return location_host(location) == self._address
        except ValueError:
            logger.debug(f"Skipping ZonePlayer with unreadable location {location!r}")
            return False

    def _match_entry(self, document: Document) -> TopologyEntry:
        matches = []
        for player in document.get_tag("ZonePlayers").get_tags("ZonePlayer"):
            attributes = player.get_attributes()
            # Other devices' entries are never parsed beyond their location
            if self._is_own_location(attributes.get("location")):
                matches.append(TopologyEntry.from_attributes(attributes, name=player.text or None))

        if not matches:
            raise TopologyLookupError(
                f"Failed to lookup the topology info for {self._address}")
        if len(matches) > 1:
            raise TopologyLookupError(
                f"Topology lists {self._address} {len(matches)} times")
        return matches[0]

    def _set_entry(self, entry: TopologyEntry) -> None:
        self._topology = entry
        log_topology_resolved(logger, self._address, entry.group, entry.coordinator, entry.uuid)

    def set_topology(self, attributes: Mapping[str, str]) -> None:
        """
        Prime topology state from a ZonePlayer attribute mapping.

        For discovery code that already holds the topology document.

        Raises:
            MalformedResponseError: if the mapping is incomplete
            TopologyLookupError: if the entry describes another device
        """
        entry = TopologyEntry.from_attributes(attributes)
        if entry.host != self._address:
            raise TopologyLookupError(
                f"Topology entry for {entry.host} does not belong to {self._address}")
        with self._topology_lock:
            self._set_entry(entry)

    def invalidate_topology(self) -> None:
        """Forget resolved topology; the next accessor fetches it again"""
        with self._topology_lock:
            self._topology = None
            self.http.invalidate(TOPOLOGY_PATH)

    def refresh_topology(self) -> TopologyEntry:
        """Re-read the topology now, e.g. after a known regroup"""
        self.invalidate_topology()
        return self._resolve_topology()

    @property
    def group(self) -> str:
        """The id of the group this speaker is a member of"""
        return self._resolve_topology().group

    @property
    def is_coordinator(self) -> bool:
        """Whether this speaker leads its current group"""
        return self._resolve_topology().coordinator

    @property
    def uuid(self) -> str:
        """The unique id of this speaker"""
        return self._resolve_topology().uuid

    def get_group(self) -> str:
        return self.group

    def get_uuid(self) -> str:
        return self.uuid

    # Rendering control

    def _call(self, schema: actions.ActionSchema, **values: Any) -> Dict[str, str]:
        params = schema.bind(**values)
        return self.http.invoke_action(schema.service, schema.name, params)

    def get_volume(self) -> int:
        """Current volume, 0-100"""
        result = self._call(actions.GET_VOLUME, Channel=MASTER_CHANNEL)
        return actions.parse_int(result, "CurrentVolume")

    def set_volume(self, volume: int) -> None:
        """Set the volume. The device clamps out of range values."""
        self._call(actions.SET_VOLUME, Channel=MASTER_CHANNEL, DesiredVolume=volume)

    def adjust_volume(self, adjust: int) -> Optional[int]:
        """
        Change the volume by a relative amount.

        Not idempotent: every call moves the volume again.

        Returns:
            The new volume when the device reports it
        """
        result = self._call(actions.SET_RELATIVE_VOLUME, Channel=MASTER_CHANNEL, Adjustment=adjust)
        return actions.optional_int(result, "NewVolume")

    def is_muted(self) -> bool:
        result = self._call(actions.GET_MUTE, Channel=MASTER_CHANNEL)
        return actions.parse_bool(result, "CurrentMute")

    def mute(self) -> None:
        self._call(actions.SET_MUTE, Channel=MASTER_CHANNEL, DesiredMute=1)

    def unmute(self) -> None:
        self._call(actions.SET_MUTE, Channel=MASTER_CHANNEL, DesiredMute=0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Speaker):
            return NotImplemented
        return self._address == other._address

    def __hash__(self) -> int:
        return hash(self._address)

    def __repr__(self) -> str:
        return f"<Speaker {self._address} {self.name!r} room={self.room!r}>"
