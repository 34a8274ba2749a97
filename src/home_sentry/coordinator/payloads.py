"""
Sensor payload parsing.

Sensors publish readings as a comma-joined list of ``key=value`` fields,
e.g. ``time=1700000000000,temp=21.5``. Parsers are pluggable: anything with
``parse(payload) -> SensorReading`` works.
"""

from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Dict, Protocol

from home_sentry.core.exceptions import MalformedPayload


@dataclass(frozen=True)
class SensorReading:
    """A parsed sensor reading."""

    time: datetime
    value: float


class PayloadParser(Protocol):
    """Turns a raw sensor payload into a reading."""

    def parse(self, payload: str) -> SensorReading: ...


class KeyValuePayloadParser:
    """
    Parser for ``key=value`` comma-separated payloads.

    Fields are looked up by name, so their order does not matter and extra
    fields are ignored.
    """

    def __init__(self, time_field: str = "time", value_field: str = "temp") -> None:
        """
        Initialize the parser.

        Args:
            time_field: Key holding the reading time in epoch milliseconds
            value_field: Key holding the numeric reading
        """
        self.time_field = time_field
        self.value_field = value_field

    def parse(self, payload: str) -> SensorReading:
        """
        Parse a sensor payload.

        Args:
            payload: Decoded message body

        Returns:
            The reading

        Raises:
            MalformedPayload: If a field is missing or not numeric
        """
        fields = self._split(payload)

        for key in (self.time_field, self.value_field):
            if key not in fields:
                raise MalformedPayload(payload, f"missing field '{key}'")

        try:
            millis = int(fields[self.time_field])
        except ValueError:
            raise MalformedPayload(payload, f"'{self.time_field}' is not an integer") from None

        try:
            value = float(fields[self.value_field])
        except ValueError:
            raise MalformedPayload(payload, f"'{self.value_field}' is not a number") from None

        try:
            time = datetime.fromtimestamp(millis / 1000, UTC)
        except (OverflowError, OSError, ValueError):
            raise MalformedPayload(payload, f"'{self.time_field}' is out of range") from None

        return SensorReading(time=time, value=value)

    @staticmethod
    def _split(payload: str) -> Dict[str, str]:
        fields: Dict[str, str] = {}
        for part in payload.split(","):
            if not part.strip():
                continue
            key, sep, value = part.partition("=")
            if not sep:
                raise MalformedPayload(payload, f"field '{part.strip()}' has no '='")
            fields[key.strip()] = value.strip()
        return fields
