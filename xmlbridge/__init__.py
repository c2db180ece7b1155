"""xmlbridge - convert Pydantic models to and from XML text and files.

xmlbridge wraps an element-per-field XML encoding of Pydantic models in four
calls: file to value, value to file, text to value and value to text.
"""

from xmlbridge._version import __version__
from xmlbridge.types import SerializeResult
from xmlbridge.exceptions import XMLBridgeError, DeserializationError, UnknownTypeError, TypeConflictError
from xmlbridge.registry import TypeRegistry, build_registry
from xmlbridge.serialization import value_to_xml, xml_to_value
from xmlbridge.bridge import (
    INVALID_OBJECT,
    XMLBridge,
    file_to_value,
    value_to_file,
    text_to_value,
    value_to_text,
    try_value_to_text,
    try_value_to_file,
)

__all__ = [
    "__version__",
    "XMLBridge",
    "file_to_value",
    "value_to_file",
    "text_to_value",
    "value_to_text",
    "try_value_to_text",
    "try_value_to_file",
    "value_to_xml",
    "xml_to_value",
    "build_registry",
    "TypeRegistry",
    "SerializeResult",
    "INVALID_OBJECT",
    "XMLBridgeError",
    "DeserializationError",
    "UnknownTypeError",
    "TypeConflictError",
]
