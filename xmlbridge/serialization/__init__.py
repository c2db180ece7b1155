"""XML serialization for Pydantic models and primitive values."""

from xmlbridge.serialization.xml_encoder import value_to_xml
from xmlbridge.serialization.xml_decoder import xml_to_value

__all__ = [
    "value_to_xml",
    "xml_to_value",
]
