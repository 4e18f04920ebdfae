"""Data models for the ARIA serial-to-cloud bridge."""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any


class WakeFactorSource(StrEnum):
    """Sensor that caused the node to wake up and transmit."""

    MAGNETISM = "Magnetism"
    TEMPERATURE = "Temperature"
    HUMIDITY = "Humidity"
    ILLUMINANCE = "Illuminance"
    ACCELERATION = "Acceleration"
    DIO = "DIO"
    TIMER = "Timer"
    UNSPECIFIED = ""


class WakeFactor(StrEnum):
    """Reason the wake factor source triggered a transmission."""

    EVENT_OCCURRED = "EventOccurred"
    VALUE_CHANGED = "ValueChanged"
    EXCEEDED_THRESHOLD = "ExceededThreshold"
    BELOW_THRESHOLD = "BelowThreshold"
    IN_THRESHOLD_RANGE = "InThresholdRange"
    UNSPECIFIED = ""


class MagnetismEvent(StrEnum):
    """Magnet position reported in the event field of a frame."""

    NO_MAGNET = "NoMagnet"
    N_POLE_MAGNET = "NPoleMagnet"
    S_POLE_MAGNET = "SPoleMagnet"
    UNSPECIFIED = ""


class MagnetismState(StrEnum):
    """Magnet state, split into state-change and periodic-report variants."""

    NO_MAGNET = "NoMagnet"
    N_POLE_MAGNET = "NPoleMagnet"
    S_POLE_MAGNET = "SPoleMagnet"
    NO_CHANGE_NO_MAGNET = "NoChangeNoMagnet"
    NO_CHANGE_N_POLE_MAGNET = "NoChangeNPoleMagnet"
    NO_CHANGE_S_POLE_MAGNET = "NoChangeSPoleMagnet"
    UNSPECIFIED = ""

    @property
    def is_periodic(self) -> bool:
        """Return True if the state came from a periodic (no-change) report."""
        return self.value.startswith("NoChange")


@dataclass(frozen=True, slots=True)
class PacketProperty:
    """Bit-packed packet property block of an ARIA frame."""

    packet_sequence_id: int
    is_event_driven: bool
    wake_factor_source: WakeFactorSource
    wake_factor: WakeFactor

    def as_dict(self) -> dict[str, Any]:
        return {
            "packetSequenceID": self.packet_sequence_id,
            "isEventDriven": self.is_event_driven,
            "wakeFactorSource": str(self.wake_factor_source),
            "wakeFactor": str(self.wake_factor),
        }


@dataclass(frozen=True, slots=True)
class SensorFrame:
    """One decoded ARIA sensor report as relayed by the radio gateway."""

    relay_serial_id: str
    link_quality: int
    sequence_number: int
    sender_serial_id: str
    sender_logical_id: str
    sensor_type: str
    pal_id: str
    sensor_count: int
    packet_property: PacketProperty
    magnetism_event: MagnetismEvent
    supply_voltage_millivolts: int
    aux_voltage_millivolts: int
    magnetism_state: MagnetismState
    temperature_celsius: float
    humidity_percent: float

    def as_dict(self) -> dict[str, Any]:
        """Return the frame as the JSON object published to the channel."""
        return {
            "relaySerialID": self.relay_serial_id,
            "linkQuality": self.link_quality,
            "sequenceNumber": self.sequence_number,
            "senderSerialID": self.sender_serial_id,
            "senderLogicalID": self.sender_logical_id,
            "sensorType": self.sensor_type,
            "palID": self.pal_id,
            "sensorCount": self.sensor_count,
            "packetProperty": self.packet_property.as_dict(),
            "magnetismEvent": str(self.magnetism_event),
            "supplyVoltageMillivolts": self.supply_voltage_millivolts,
            "auxVoltageMillivolts": self.aux_voltage_millivolts,
            "magnetismState": str(self.magnetism_state),
            "temperatureCelsius": self.temperature_celsius,
            "humidityPercent": self.humidity_percent,
        }

    def to_json(self) -> bytes:
        return json.dumps(self.as_dict()).encode("utf-8")


@dataclass
class JWT:
    """Represents a JWT token with its expiration timestamp.

    expire_at is None when the token carries no readable 'exp' claim.
    """

    token: str
    expire_at: datetime | None


@dataclass(frozen=True, slots=True)
class TokenResponse:
    """Successful response of the token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    scope: str = ""


@dataclass(frozen=True, slots=True)
class FieldError:
    """One entry of the messaging API's structured error body."""

    field: str = ""
    reason: str = ""
    message: str = ""


@dataclass(frozen=True, slots=True)
class PublishErrorBody:
    """Structured error body returned by the messaging API."""

    error_code: str
    errors: tuple[FieldError, ...] = ()
