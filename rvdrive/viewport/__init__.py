"""Viewport input translation: coordinates, clicks, keys, and raw events."""

from rvdrive.viewport.click_classifier import ClickClassifier
from rvdrive.viewport.coordinate_mapper import logicalPoint_map
from rvdrive.viewport.input_translator import InputEventTranslator, TranslationResult
from rvdrive.viewport.key_translator import key_translate
from rvdrive.viewport.state import ViewportState

__all__ = [
    "ClickClassifier",
    "InputEventTranslator",
    "TranslationResult",
    "ViewportState",
    "key_translate",
    "logicalPoint_map",
]
