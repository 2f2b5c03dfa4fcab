"""
Tests for service enumeration, documents and action schemas
"""

from unittest.mock import Mock

import pytest
import requests

from sonos_speaker import actions
from sonos_speaker.exceptions import (
    ActionArgumentError,
    InvalidServiceError,
    MalformedResponseError,
    TransportError,
)
from sonos_speaker.models import Service, TopologyEntry, location_host
from sonos_speaker.xml_document import Document, DocumentFetcher

from conftest import DESCRIPTION_XML, TOPOLOGY_XML


class TestService:
    """Test Service parsing and paths"""

    @pytest.mark.parametrize("value,expected", [
        ("rendering-control", Service.RENDERING_CONTROL),
        ("RenderingControl", Service.RENDERING_CONTROL),
        ("transport-control", Service.TRANSPORT_CONTROL),
        ("AVTransport", Service.TRANSPORT_CONTROL),
        ("content-directory", Service.CONTENT_DIRECTORY),
        ("alarm-clock", Service.ALARM_CLOCK),
        (Service.ALARM_CLOCK, Service.ALARM_CLOCK),
    ])
    def test_parse(self, value, expected):
        """Test keys, service types and members all resolve"""
        assert Service.parse(value) is expected

    @pytest.mark.parametrize("value", ["bogus-service", "", "renderingcontrol", None, 3])
    def test_parse_unknown(self, value):
        """Test anything else is an InvalidServiceError"""
        with pytest.raises(InvalidServiceError):
            Service.parse(value)

    def test_control_paths(self):
        """Test the URL prefix of every service"""
        assert Service.TRANSPORT_CONTROL.control_path == "/MediaRenderer/AVTransport/Control"
        assert Service.RENDERING_CONTROL.control_path == "/MediaRenderer/RenderingControl/Control"
        assert Service.CONTENT_DIRECTORY.control_path == "/MediaServer/ContentDirectory/Control"
        assert Service.ALARM_CLOCK.control_path == "/AlarmClock/Control"

    def test_urn(self):
        assert Service.ALARM_CLOCK.urn == "urn:schemas-upnp-org:service:AlarmClock:1"


class TestTopologyEntry:
    """Test TopologyEntry.from_attributes"""

    def test_from_attributes(self):
        """Test host is extracted from the location URL"""
        entry = TopologyEntry.from_attributes({
            "location": "http://10.0.0.7:1400/xml/device_description.xml",
            "group": "RINCON_A:3",
            "coordinator": "true",
            "uuid": "RINCON_A",
        }, name="Office")

        assert entry.host == "10.0.0.7"
        assert entry.coordinator is True
        assert entry.name == "Office"

    @pytest.mark.parametrize("flag", ["false", "True", "1", ""])
    def test_coordinator_requires_literal_true(self, flag):
        """Test only the exact string "true" marks a coordinator"""
        entry = TopologyEntry.from_attributes({
            "location": "http://10.0.0.7:1400/", "group": "G", "coordinator": flag, "uuid": "U",
        })
        assert entry.coordinator is False

    def test_missing_attribute(self):
        """Test an incomplete entry is a malformed response"""
        with pytest.raises(MalformedResponseError):
            TopologyEntry.from_attributes({"location": "http://10.0.0.7:1400/"})

    @pytest.mark.parametrize("location", [
        "http://[fe80::1:1400/xml/device_description.xml",
        "/xml/device_description.xml",
    ])
    def test_bad_location(self, location):
        """Test an unreadable location is a malformed response"""
        with pytest.raises(MalformedResponseError):
            TopologyEntry.from_attributes({"location": location, "group": "G", "coordinator": "true", "uuid": "U"})

    @pytest.mark.parametrize("location, host", [
        ("http://Kitchen.local:1400/xml/device_description.xml", "Kitchen.local"),
        ("http://10.0.0.7/status", "10.0.0.7"),
        ("http://user@10.0.0.7:1400/", "10.0.0.7"),
        ("http://[fe80::1]:1400/", "fe80::1"),
    ])
    def test_location_host_preserves_case(self, location, host):
        assert location_host(location) == host


class TestDocument:
    """Test namespace-agnostic queries"""

    def test_namespaced_lookup(self):
        """Test tags are found inside a default namespace"""
        device = Document.from_string(DESCRIPTION_XML.encode()).get_tag("device")

        assert device.get_tag("roomName").text == "Kitchen"
        assert str(device.get_tag("modelName")) == "Sonos One"
        assert device.find_tag("missing") is None

    def test_get_tags_and_attributes(self):
        """Test repeated tags and their attributes"""
        players = Document.from_string(TOPOLOGY_XML.encode()).get_tag("ZonePlayers").get_tags("ZonePlayer")

        assert [p.text for p in players] == ["Kitchen", "Living Room"]
        assert players[1].get_attributes()["coordinator"] == "false"

    def test_missing_tag(self):
        """Test get_tag raises on absent tags"""
        with pytest.raises(MalformedResponseError):
            Document.from_string(b"<root/>").get_tag("device")


class TestDocumentFetcher:
    """Test DocumentFetcher.get over a mocked session"""

    def test_get(self):
        session = Mock()
        session.get.return_value = Mock(status_code=200, content=TOPOLOGY_XML.encode())

        document = DocumentFetcher(timeout_s=2.5, session=session).get("http://h:1400/status/topology")

        assert document.tag == "ZPSupportInfo"
        session.get.assert_called_once_with("http://h:1400/status/topology", timeout=2.5)

    def test_bad_status(self):
        """Test non-2xx is a transport error"""
        session = Mock()
        session.get.return_value = Mock(status_code=503, content=b"")

        with pytest.raises(TransportError):
            DocumentFetcher(session=session).get("http://h:1400/status/topology")

    def test_timeout(self):
        """Test a timeout is a transport error"""
        session = Mock()
        session.get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(TransportError):
            DocumentFetcher(session=session).get("http://h:1400/status/topology")


class TestActionSchema:
    """Test parameter binding and result parsing"""

    def test_bind_orders_parameters(self):
        """Test values come back in schema order"""
        bound = actions.SET_VOLUME.bind(DesiredVolume=10, Channel="Master")

        assert bound == [("Channel", "Master"), ("DesiredVolume", 10)]

    def test_bind_rejects_missing_and_extra(self):
        with pytest.raises(ActionArgumentError):
            actions.SET_VOLUME.bind(Channel="Master")
        with pytest.raises(ActionArgumentError):
            actions.GET_VOLUME.bind(Channel="Master", Extra=1)

    def test_parse_bool(self):
        """Test UPnP boolean spellings"""
        assert actions.parse_bool({"CurrentMute": "1"}, "CurrentMute") is True
        assert actions.parse_bool({"CurrentMute": "0"}, "CurrentMute") is False
        assert actions.parse_bool({"CurrentMute": "true"}, "CurrentMute") is True
        with pytest.raises(MalformedResponseError):
            actions.parse_bool({"CurrentMute": "maybe"}, "CurrentMute")

    def test_parse_int(self):
        assert actions.parse_int({"CurrentVolume": " 42 "}, "CurrentVolume") == 42
        with pytest.raises(MalformedResponseError):
            actions.parse_int({}, "CurrentVolume")
        assert actions.optional_int({}, "NewVolume") is None
