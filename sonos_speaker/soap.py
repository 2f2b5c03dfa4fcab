"""
SOAP action client for device control endpoints
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

import requests

from .exceptions import MalformedResponseError, RemoteActionError, TransportError
from .models import Service
from .xml_document import http_session

logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
UPNP_CONTROL_NS = "urn:schemas-upnp-org:control-1-0"
_QUOTE_ENTITIES = {'"': "&quot;"}

SOAP_BODY_TEMPLATE = (
    '<?xml version="1.0"?>'
    '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" '
    's:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">'
    '<s:Body>'
    '<u:{action} xmlns:u="{urn}">'
    '{arguments}'
    '</u:{action}>'
    '</s:Body>'
    '</s:Envelope>'
)


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def wrap_arguments(params: Sequence[Tuple[str, Any]]) -> str:
    """
    Serialise ordered (name, value) pairs as SOAP argument tags.

    >>> wrap_arguments([("InstanceID", 0), ("Channel", "Master")])
    '<InstanceID>0</InstanceID><Channel>Master</Channel>'
    """
    return "".join(
        f"<{name}>{escape(format_value(value), _QUOTE_ENTITIES)}</{name}>"
        for name, value in params
    )


def build_command(service: Service, action: str,
                  params: Sequence[Tuple[str, Any]]) -> Tuple[Dict[str, str], str]:
    """Return the POST headers and SOAP body for an action"""
    body = SOAP_BODY_TEMPLATE.format(
        action=action, urn=service.urn, arguments=wrap_arguments(params))
    headers = {
        'Content-Type': 'text/xml; charset="utf-8"',
        'SOAPACTION': f'"{service.urn}#{action}"'
    }
    return headers, body


def unwrap_arguments(xml_response) -> Dict[str, str]:
    """Extract {argument_name: value} from a SOAP action response"""
    try:
        tree = ET.fromstring(xml_response)
    except ET.ParseError as e:
        raise MalformedResponseError(f"Invalid SOAP response: {e}") from e

    body = tree.find(f"{{{SOAP_ENV_NS}}}Body")
    if body is None or len(body) == 0:
        raise MalformedResponseError("SOAP response has no Body content")
    # First child of Body is <u:{action}Response>
    return {child.tag.rsplit("}", 1)[-1]: child.text or "" for child in body[0]}


def parse_fault(xml_error) -> Tuple[Optional[int], str]:
    """Return (errorCode, errorDescription) from a SOAP fault body"""
    try:
        tree = ET.fromstring(xml_error)
    except ET.ParseError:
        return None, ""
    error_code = tree.findtext(f".//{{{UPNP_CONTROL_NS}}}errorCode")
    if error_code is None:
        error_code = tree.findtext(".//errorCode")
    description = tree.findtext(f".//{{{UPNP_CONTROL_NS}}}errorDescription") or ""
    try:
        return (int(error_code.strip()) if error_code is not None else None), description.strip()
    except ValueError:
        return None, description.strip()


class SoapClient:
    """Sends actions to one device. Built once per transport handle."""

    def __init__(self, address: str, port: int = 1400, timeout_s: float = 5.0,
                 session: Optional[requests.Session] = None):
        self.address = address
        self.port = port
        self.timeout_s = timeout_s
        self.session = session or http_session()

    @property
    def base_url(self) -> str:
        return f"http://{self.address}:{self.port}"

    def control_url(self, service: Service) -> str:
        return self.base_url + service.control_path

    def call(self, service: Service, action: str,
             params: Sequence[Tuple[str, Any]]) -> Dict[str, str]:
        """
        Invoke ``action`` on ``service`` and return its out-arguments.

        Args:
            service: Target service
            action: Action name, e.g. "GetVolume"
            params: Ordered (name, value) pairs

        Returns:
            Mapping of out-argument name to text value (possibly empty)

        Raises:
            RemoteActionError: if the device answers with a UPnP fault
            TransportError: on network failure or unexpected status
        """
        headers, body = build_command(service, action, params)
        url = self.control_url(service)
        logger.debug(f"POST {url} {headers['SOAPACTION']}")

        try:
            response = self.session.post(
                url, headers=headers, data=body.encode("utf-8"), timeout=self.timeout_s)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Timeout calling {action} on {self.address}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to call {action} on {self.address}: {e}") from e

        status = response.status_code
        if status == 200:
            return unwrap_arguments(response.content)
        if status == 500:
            # UPnP reports rejected actions as a SOAP Fault with HTTP 500
            error_code, description = parse_fault(response.content)
            raise RemoteActionError(
                service=service.service_type,
                action=action,
                error_code=error_code,
                error_description=description,
                error_xml=response.text,
                address=self.address,
            )
        raise TransportError(f"{action} on {self.address} returned status {status}")
