"""Inbound push-channel messages from the remote automation backend"""

import base64
import binascii
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from rvdrive.common.types import FrameSource, ViewportFrame


class MessageType(Enum):
    """Types of push messages"""

    FRAME = "frame"
    STATUS = "status"
    ERROR = "error"
    UNKNOWN = "unknown"


_FRAME_TYPE_ALIASES = {"frame", "screenshot"}


@dataclass
class Message:
    """One decoded push message"""

    msg_type: MessageType
    payload: Dict[str, Any]

    @staticmethod
    def json_deserialize(data: str) -> "Message":
        """
        Deserialize message from JSON string

        Args:
            data: JSON text received on the push channel

        Returns:
            Deserialized Message object

        Raises:
            ValueError: If the text is not a JSON object
        """
        parsed = json.loads(data)
        if not isinstance(parsed, dict):
            raise ValueError("Push message must be a JSON object")
        raw_type = str(parsed.get("type", "")).lower()
        if raw_type in _FRAME_TYPE_ALIASES:
            msg_type = MessageType.FRAME
        elif raw_type == MessageType.STATUS.value:
            msg_type = MessageType.STATUS
        elif raw_type == MessageType.ERROR.value:
            msg_type = MessageType.ERROR
        else:
            msg_type = MessageType.UNKNOWN
        return Message(msg_type=msg_type, payload=parsed)


class MessageParser:
    """Parses push messages into domain objects"""

    @staticmethod
    def imageData_decode(data: str) -> bytes:
        """
        Decode a base64 image, with or without a `data:` URL prefix

        Args:
            data: Base64 text or data URL.

        Returns:
            Encoded image bytes.

        Raises:
            ValueError: If the payload is not base64 text.
        """
        if not isinstance(data, str):
            raise ValueError(f"Frame image must be base64 text, got {type(data).__name__}")
        if data.startswith("data:"):
            _, _, data = data.partition(",")
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Frame image is not valid base64: {exc}") from exc

    @staticmethod
    def frame_parse(
        message: Message,
        session_id: str,
        source: FrameSource = FrameSource.PUSH,
    ) -> ViewportFrame:
        """
        Parse a frame message

        Args:
            message: Message of type FRAME.
            session_id: Session the channel belongs to.
            source: Acquisition path of the frame.

        Returns:
            Decoded ViewportFrame.

        Raises:
            ValueError: If the message carries no image.
        """
        payload = message.payload
        data: Optional[str] = payload.get("data") or payload.get("screenshot") or payload.get("image")
        if not data:
            raise ValueError("Frame message has no image data")
        return ViewportFrame(
            image=MessageParser.imageData_decode(data),
            session_id=session_id,
            tab_id=payload.get("tab_id"),
            url=payload.get("url"),
            source=source,
        )

    @staticmethod
    def pushViable_parse(message: Message) -> bool:
        """
        Read the push-viability flag of a status message

        A status message without an explicit flag means the channel is fine.

        Args:
            message: Message of type STATUS.

        Returns:
            Whether push delivery is currently viable.
        """
        payload = message.payload
        if "push_viable" in payload:
            return bool(payload["push_viable"])
        if "connected" in payload:
            return bool(payload["connected"])
        return True
