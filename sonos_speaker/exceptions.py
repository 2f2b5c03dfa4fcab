"""
Exceptions raised by the speaker control layer
"""

from typing import Optional


class SpeakerError(Exception):
    """Base exception for everything raised by sonos_speaker"""


class ConstructionError(SpeakerError):
    """The device descriptor could not be fetched or parsed"""


class TransportError(SpeakerError):
    """Network-level failure: unreachable host, timeout, bad status or body"""


class MalformedResponseError(TransportError):
    """The device answered, but the payload could not be understood"""


class InvalidServiceError(SpeakerError, ValueError):
    """Unknown service name; indicates a caller bug"""


class ActionArgumentError(SpeakerError, ValueError):
    """Action parameters do not match the action's schema"""


class TopologyLookupError(SpeakerError):
    """This speaker's address has no usable entry in the topology document"""


# UPnP fault codes, see UPnP Device Architecture 1.0 section 3.2.2
UPNP_ERRORS = {
    400: "Bad Request",
    401: "Invalid Action",
    402: "Invalid Args",
    404: "Invalid Var",
    412: "Precondition Failed",
    501: "Action Failed",
    600: "Argument Value Invalid",
    601: "Argument Value Out of Range",
    602: "Optional Action Not Implemented",
    603: "Out Of Memory",
    604: "Human Intervention Required",
    605: "String Argument Too Long",
    606: "Action Not Authorized",
    607: "Signature Failure",
    608: "Signature Missing",
    609: "Not Encrypted",
    610: "Invalid Sequence",
    611: "Invalid Control URL",
    612: "No Such Session",
}

INVALID_ARGUMENT_CODES = frozenset({402, 600, 601, 605})
TRANSIENT_CODES = frozenset({501, 603, 604})


class RemoteActionError(SpeakerError):
    """The device rejected an action with a UPnP fault"""

    def __init__(self, service: str, action: str, error_code: Optional[int],
                 error_description: str = "", error_xml: str = "",
                 address: Optional[str] = None):
        self.service = service
        self.action = action
        self.error_code = error_code
        self.error_description = error_description or UPNP_ERRORS.get(error_code, "")
        self.error_xml = error_xml
        self.address = address
        target = f" from {address}" if address else ""
        message = f"UPnP error {error_code} on {service}#{action}{target}"
        if self.error_description:
            message += f": {self.error_description}"
        super().__init__(message)

    @property
    def is_invalid_argument(self) -> bool:
        """True when the fault blames the parameters that were sent"""
        return self.error_code in INVALID_ARGUMENT_CODES

    @property
    def is_transient(self) -> bool:
        """True when the device may accept the same request later.

        Vendor specific codes (700 and up) are mostly busy/state conflicts
        on these devices, so they count as transient too.
        """
        if self.error_code is None:
            return False
        return self.error_code in TRANSIENT_CODES or self.error_code >= 700
