"""Unit tests for push messages and command payloads"""

import base64

import pytest
from rvdrive.common.types import FrameSource, MouseButton
from rvdrive.protocol.commands import (
    ClickCommand,
    CommandBuilder,
    CommandType,
    MoveCommand,
    Suppressed,
    SuppressReason,
    defaultPrevented_check,
)
from rvdrive.protocol.message import Message, MessageParser, MessageType


class TestMessageDeserialize:
    """Test push message typing"""

    def test_frame_aliases(self):
        """Test both frame spellings map to FRAME"""
        assert Message.json_deserialize('{"type": "frame"}').msg_type == MessageType.FRAME
        assert Message.json_deserialize('{"type": "screenshot"}').msg_type == MessageType.FRAME

    def test_unknown_type(self):
        """Test unrecognized types are UNKNOWN"""
        assert Message.json_deserialize('{"type": "hello"}').msg_type == MessageType.UNKNOWN

    def test_non_object_rejected(self):
        """Test JSON arrays are rejected"""
        with pytest.raises(ValueError, match="JSON object"):
            Message.json_deserialize("[1, 2]")


class TestMessageParser:
    """Test frame and status parsing"""

    def test_frame_parse_source(self):
        """Test the acquisition path is recorded"""
        message = Message(
            msg_type=MessageType.FRAME,
            payload={"screenshot": base64.b64encode(b"img").decode()},
        )
        frame = MessageParser.frame_parse(message, "s1", source=FrameSource.POLL)
        assert frame.image == b"img"
        assert frame.source == FrameSource.POLL

    def test_frame_without_image(self):
        """Test frames need image data"""
        with pytest.raises(ValueError, match="no image data"):
            MessageParser.frame_parse(Message(msg_type=MessageType.FRAME, payload={}), "s1")

    def test_non_text_image_rejected(self):
        """Test image data must be base64 text"""
        with pytest.raises(ValueError, match="must be base64 text"):
            MessageParser.imageData_decode(123)

    def test_status_default_viable(self):
        """Test status without flags keeps push viable"""
        message = Message(msg_type=MessageType.STATUS, payload={"type": "status"})
        assert MessageParser.pushViable_parse(message) is True


class TestCommands:
    """Test command values and defaults"""

    def test_command_type_fixed(self):
        """Test command_type is set per class"""
        assert MoveCommand(x=1, y=2).command_type == CommandType.MOVE
        assert ClickCommand(x=1, y=2).command_type == CommandType.CLICK

    def test_click_defaults(self):
        """Test clicks default to a primary single click"""
        payload = CommandBuilder.payload_build(ClickCommand(x=3, y=4))
        assert payload == {"x": 3, "y": 4, "button": MouseButton.PRIMARY.value, "click_count": 1}

    def test_unknown_command_rejected(self):
        """Test non-commands are refused"""
        with pytest.raises(TypeError):
            CommandBuilder.payload_build(object())

    def test_default_prevented(self):
        """Test commands always cancel local defaults"""
        assert defaultPrevented_check(MoveCommand(x=0, y=0)) is True
        assert defaultPrevented_check(Suppressed(reason=SuppressReason.STATE_ONLY)) is False
