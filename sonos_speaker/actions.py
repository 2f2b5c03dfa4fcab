"""
Typed schemas for the actions a Speaker sends
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple, Type

from .exceptions import ActionArgumentError, MalformedResponseError
from .models import Service


@dataclass(frozen=True)
class Param:
    name: str
    type: Type


@dataclass(frozen=True)
class ActionSchema:
    """Ordered, named, typed input parameters of one action"""
    service: Service
    name: str
    params: Tuple[Param, ...] = ()

    def bind(self, **values: Any) -> List[Tuple[str, Any]]:
        """
        Validate ``values`` and return them ordered as the action expects.

        Raises:
            ActionArgumentError: on missing, unexpected or mistyped values
        """
        expected = [p.name for p in self.params]
        missing = [n for n in expected if n not in values]
        unexpected = sorted(set(values) - set(expected))
        if missing or unexpected:
            raise ActionArgumentError(
                f"{self.name}: missing {missing}, unexpected {unexpected}")

        bound = []
        for param in self.params:
            value = values[param.name]
            # bool is an int subclass; a flag is never a volume
            if isinstance(value, bool) and param.type is not bool:
                raise ActionArgumentError(f"{self.name}.{param.name} must be {param.type.__name__}, got bool")
            if not isinstance(value, param.type):
                raise ActionArgumentError(
                    f"{self.name}.{param.name} must be {param.type.__name__}, "
                    f"got {type(value).__name__}")
            bound.append((param.name, value))
        return bound


_CHANNEL = Param("Channel", str)

GET_VOLUME = ActionSchema(Service.RENDERING_CONTROL, "GetVolume", (_CHANNEL,))
SET_VOLUME = ActionSchema(Service.RENDERING_CONTROL, "SetVolume",
                          (_CHANNEL, Param("DesiredVolume", int)))
SET_RELATIVE_VOLUME = ActionSchema(Service.RENDERING_CONTROL, "SetRelativeVolume",
                                   (_CHANNEL, Param("Adjustment", int)))
GET_MUTE = ActionSchema(Service.RENDERING_CONTROL, "GetMute", (_CHANNEL,))
SET_MUTE = ActionSchema(Service.RENDERING_CONTROL, "SetMute",
                        (_CHANNEL, Param("DesiredMute", int)))


def parse_int(result: Mapping[str, str], name: str) -> int:
    try:
        return int(result[name].strip())
    except KeyError as e:
        raise MalformedResponseError(f"Response has no {name}: {dict(result)}") from e
    except ValueError as e:
        raise MalformedResponseError(f"{name} is not an integer: {result[name]!r}") from e


def parse_bool(result: Mapping[str, str], name: str) -> bool:
    """UPnP booleans arrive as "0"/"1" (some firmware sends "false"/"true")"""
    try:
        raw = result[name].strip().lower()
    except KeyError as e:
        raise MalformedResponseError(f"Response has no {name}: {dict(result)}") from e
    if raw in ("1", "true"):
        return True
    if raw in ("0", "false"):
        return False
    raise MalformedResponseError(f"{name} is not a boolean: {result[name]!r}")


def optional_int(result: Dict[str, str], name: str):
    if not result.get(name, "").strip():
        return None
    return parse_int(result, name)
