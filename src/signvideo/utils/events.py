"""MQTT broadcaster for job status transitions."""

import json
import time
from typing import Protocol, override
from urllib.parse import urlparse

import paho.mqtt.client as mqtt
from loguru import logger
from paho.mqtt.client import ConnectFlags, DisconnectFlags
from paho.mqtt.enums import CallbackAPIVersion
from paho.mqtt.properties import Properties
from paho.mqtt.reasoncodes import ReasonCode

from ..common.schema_job_record import JobRecord


class InvalidMQTTURLException(ValueError):
    pass


class UnsupportedMQTTURLException(ValueError):
    pass


def parse_mqtt_url(url: str) -> tuple[str, int]:
    """Split mqtt://host:port into (host, port). Port defaults to 1883."""
    parsed = urlparse(url)
    if parsed.scheme != "mqtt":
        raise UnsupportedMQTTURLException(f"Unsupported MQTT URL scheme in '{url}', expected mqtt://")
    if not parsed.hostname:
        raise InvalidMQTTURLException(f"MQTT URL '{url}' has no host")
    try:
        port = parsed.port or 1883
    except ValueError as e:
        raise InvalidMQTTURLException(f"MQTT URL '{url}' has an invalid port") from e
    return parsed.hostname, port


def job_event_payload(record: JobRecord) -> str:
    return json.dumps(
        {
            "requestId": record.id,
            "status": record.status.value,
            "videoUrl": record.video_url,
            "timestamp": record.updated_at.isoformat(),
        }
    )


class BroadcasterBase(Protocol):
    connected: bool
    topic_prefix: str

    def connect(self) -> bool:
        return False

    def disconnect(self) -> None:
        pass

    def publish_event(self, *, topic: str, payload: str, qos: int = 1) -> bool:
        return False

    def publish_job(self, record: JobRecord) -> bool:
        return self.publish_event(
            topic=f"{self.topic_prefix}/{record.id}",
            payload=job_event_payload(record),
        )


class MQTTBroadcaster(BroadcasterBase):
    """Publishes job events over MQTT v5."""

    def __init__(self, url: str, topic_prefix: str = "signvideo/jobs"):
        self.broker, self.port = parse_mqtt_url(url)
        self.topic_prefix: str = topic_prefix.rstrip("/")
        self.client: mqtt.Client | None = None
        self.connected: bool = False

    @override
    def connect(self) -> bool:
        try:
            logger.info(f"Connecting job event broadcaster to {self.broker}:{self.port}")
            self.client = mqtt.Client(
                callback_api_version=CallbackAPIVersion.VERSION2,
                protocol=mqtt.MQTTv5,
            )
            self.client.on_connect = self._on_connect
            self.client.on_disconnect = self._on_disconnect

            _ = self.client.reconnect_delay_set(min_delay=1, max_delay=30)
            _ = self.client.loop_start()
            _ = self.client.connect(self.broker, self.port, keepalive=60, clean_start=True)

            # Wait up to 5 seconds for the CONNACK
            timeout = 5
            start_time = time.time()
            while not self.connected and (time.time() - start_time) < timeout:
                time.sleep(0.1)

            return self.connected
        except Exception as e:
            logger.warning(f"Failed to connect to MQTT broker {self.broker}:{self.port}: {e}")
            self.connected = False
            return False

    @override
    def disconnect(self) -> None:
        if self.client:
            _ = self.client.loop_stop()
            _ = self.client.disconnect()
        self.connected = False

    @override
    def publish_event(self, *, topic: str, payload: str, qos: int = 1) -> bool:
        if not self.connected or not self.client:
            return False

        try:
            result = self.client.publish(topic, payload, qos=qos, retain=False)
            return result.rc == mqtt.MQTT_ERR_SUCCESS
        except Exception as e:
            logger.error(f"Error publishing job event to {topic}: {e}")
            return False

    def _on_connect(
        self,
        _client: mqtt.Client,
        _userdata: object,
        _flags: ConnectFlags,
        reason_code: ReasonCode,
        properties: Properties | None,
    ) -> None:
        self.connected = reason_code == 0
        if self.connected:
            logger.info("MQTT connected using v5")
        else:
            logger.warning(f"MQTT connection failed: reason={reason_code}, props={properties}")

    def _on_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: object,
        _disconnect_flags: DisconnectFlags,
        reason_code: ReasonCode,
        _properties: Properties | None,
    ) -> None:
        self.connected = False
        logger.warning(f"MQTT disconnected: {reason_code}")


class NoOpBroadcaster(BroadcasterBase):
    """Used when no MQTT broker is configured. Accepts and drops every event."""

    def __init__(self, topic_prefix: str = "signvideo/jobs"):
        self.topic_prefix: str = topic_prefix.rstrip("/")
        self.connected: bool = True

    @override
    def connect(self) -> bool:
        return True

    @override
    def disconnect(self) -> None:
        pass

    @override
    def publish_event(self, *, topic: str, payload: str, qos: int = 1) -> bool:
        return True


def create_broadcaster(
    url: str | None, topic_prefix: str = "signvideo/jobs"
) -> MQTTBroadcaster | NoOpBroadcaster:
    """Build and connect a broadcaster for the given broker URL.

    Returns a NoOpBroadcaster when url is None.

    Raises:
        RuntimeError: If the MQTT broker cannot be reached.
    """
    if url is None:
        return NoOpBroadcaster(topic_prefix)

    broadcaster = MQTTBroadcaster(url, topic_prefix)
    if not broadcaster.connect():
        broadcaster.disconnect()
        raise RuntimeError(
            f"Failed to connect to MQTT broker at {url}. "
            "Check that the broker is running and the URL is correct."
        )
    return broadcaster
