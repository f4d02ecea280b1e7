"""
Local key identifiers to remote key vocabulary.

A key event resolves to exactly one of three outcomes: a structured key press
(named key or shortcut), a literal character typed as text, or suppression
for the reserved local browser shortcuts.
"""

from __future__ import annotations

import logging

from rvdrive.common.settings import settings
from rvdrive.common.types import ModifierState
from rvdrive.protocol.commands import (
    KeypressCommand,
    Suppressed,
    SuppressReason,
    TypeCommand,
)

logger = logging.getLogger(__name__)

__all__ = [
    "KeyTranslation",
    "NAMED_KEYS",
    "key_translate",
    "reservedShortcut_check",
]

KeyTranslation = KeypressCommand | TypeCommand | Suppressed

NAMED_KEYS: dict[str, str] = {
    "Enter": "Enter",
    "Tab": "Tab",
    "Backspace": "Backspace",
    "Delete": "Delete",
    "Escape": "Escape",
    "ArrowUp": "ArrowUp",
    "ArrowDown": "ArrowDown",
    "ArrowLeft": "ArrowLeft",
    "ArrowRight": "ArrowRight",
    "Home": "Home",
    "End": "End",
    "PageUp": "PageUp",
    "PageDown": "PageDown",
    " ": "Space",
    **{f"F{index}": f"F{index}" for index in range(1, 13)},
}


def reservedShortcut_check(key: str, modifiers: ModifierState) -> bool:
    """
    Check for Ctrl/Cmd + R, T or W, in either case.

    Args:
        key: Host key identifier.
        modifiers: Modifier state of the event.

    Returns:
        `True` when the combination must stay local.
    """
    return (modifiers.ctrl or modifiers.meta) and key in settings.RESERVED_SHORTCUT_KEYS


def key_translate(key: str, key_code: int, modifiers: ModifierState) -> KeyTranslation:
    """
    Translate one key-down event.

    Decision order: reserved shortcut, then named key or held ctrl/alt/meta,
    then single printable character, then raw-identifier fallback.

    Args:
        key: Host key identifier (e.g. "a", "Enter", " ").
        key_code: Host numeric key code, forwarded untouched.
        modifiers: Modifier state of the event.

    Returns:
        Keypress command, type command, or reserved-shortcut suppression.
    """
    if reservedShortcut_check(key, modifiers):
        logger.debug("Reserved local shortcut %r left to the host", key)
        return Suppressed(reason=SuppressReason.RESERVED_SHORTCUT, default_prevented=False)

    named: str | None = NAMED_KEYS.get(key)
    if named is not None or modifiers.commandModifier_check():
        return KeypressCommand(key=named or key, key_code=key_code, modifiers=modifiers)

    if len(key) == 1 and key.isprintable():
        return TypeCommand(text=key)

    return KeypressCommand(key=key, key_code=key_code, modifiers=modifiers)
