"""Convert values to XML strings."""

import re
import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import Any, Union, get_origin, get_args
from types import UnionType
from pydantic import BaseModel
from datetime import datetime, date
from enum import Enum

from xmlbridge.exceptions import UnknownTypeError
from xmlbridge.registry import TypeRegistry, build_registry, is_model_class

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XSI_TYPE = f"{{{XSI_NAMESPACE}}}type"

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'

# Root element names for primitive shapes
PRIMITIVE_ROOT_TAGS = {
    str: "string",
    bool: "boolean",
    int: "int",
    float: "double",
    Decimal: "decimal",
}

# Element names usable for dict keys (no colon, so no namespace prefixes)
_XML_NAME = re.compile(r"[^\W\d][\w.\-]*")

# Characters XML 1.0 does not allow, even escaped
_ILLEGAL_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

ET.register_namespace("xsi", XSI_NAMESPACE)


def root_tag_for(shape: type) -> str:
    """Return the root element name used for ``shape``.

    Raises:
        TypeError: If shape is neither a Pydantic model class nor a primitive
    """
    if is_model_class(shape):
        return shape.__name__
    if shape in PRIMITIVE_ROOT_TAGS:
        return PRIMITIVE_ROOT_TAGS[shape]
    raise TypeError(f"Expected Pydantic BaseModel class or primitive type, got {shape!r}")


def value_to_xml(
    value: Any,
    registry: TypeRegistry | None = None,
    shape: type | None = None,
    indent: str | None = "  ",
    xml_declaration: bool = True,
) -> str:
    """Convert a model instance (or primitive) to an XML string.

    Args:
        value: The value to convert
        registry: Known model classes; built from ``shape`` when omitted
        shape: Declared type of the value, defaults to ``type(value)``
        indent: Indentation unit for pretty-printing, None for compact output
        xml_declaration: Whether to start with an ``<?xml ...?>`` line

    Returns:
        XML string

    Raises:
        TypeError: If the value is not a model or supported primitive, or
            is not an instance of ``shape``
        UnknownTypeError: If a model in the value needs an ``xsi:type``
            discriminator but its class is not in the registry

    Example:
        >>> from pydantic import BaseModel
        >>> class Person(BaseModel):
        ...     name: str
        ...     age: int
        >>> person = Person(name="Alice", age=30)
        >>> print(value_to_xml(person, xml_declaration=False))
        <Person>
          <name>Alice</name>
          <age>30</age>
        </Person>
    """
    if shape is None:
        shape = type(value)
    root_tag = root_tag_for(shape)
    if not isinstance(value, shape):
        raise TypeError(f"Expected {shape.__name__} instance, got {type(value).__name__}")
    if registry is None:
        registry = build_registry(shape)

    root = ET.Element(root_tag)
    _value_to_element(root, value, shape, registry)

    if indent is not None:
        _indent(root, indent)
    body = ET.tostring(root, encoding="unicode", method="xml")
    # ElementTree leaves \r raw in text, and parsers normalize it to \n
    body = body.replace("\r", "&#13;")
    if xml_declaration:
        return f"{XML_DECLARATION}\n{body}"
    return body


def _model_to_element(parent: ET.Element, model: BaseModel, registry: TypeRegistry) -> None:
    """Convert a Pydantic model to XML elements under parent."""
    for field_name, field_info in type(model).model_fields.items():
        value = getattr(model, field_name)

        # Null references are not written
        if value is None:
            continue

        field_element = ET.SubElement(parent, field_name)
        _value_to_element(field_element, value, field_info.annotation, registry)


def _value_to_element(
    element: ET.Element,
    value: Any,
    declared: Any,
    registry: TypeRegistry,
) -> None:
    """Convert a value to XML content within element."""
    if value is None:
        return

    elif isinstance(value, BaseModel):
        if type(value) is not model_slot(declared):
            if not registry.is_known(type(value)):
                raise UnknownTypeError(type(value).__name__)
            element.set(XSI_TYPE, type(value).__name__)
        _model_to_element(element, value, registry)

    elif isinstance(value, dict):
        # Dictionary - each key becomes a sub-element
        value_type = container_arg(declared, dict, 1)
        for key, val in value.items():
            item_element = ET.SubElement(element, _element_name(key))
            _value_to_element(item_element, val, value_type, registry)

    elif isinstance(value, (list, tuple, set, frozenset)):
        # Sequence - each item becomes an <item> sub-element
        item_type = container_arg(declared, (list, tuple, set, frozenset), 0)
        for item in value:
            item_element = ET.SubElement(element, "item")
            _value_to_element(item_element, item, item_type, registry)

    elif isinstance(value, datetime):
        element.text = value.isoformat()

    elif isinstance(value, date):
        element.text = value.isoformat()

    elif isinstance(value, Enum):
        element.text = _xml_text(str(value.value))

    elif isinstance(value, bool):
        # Boolean as lowercase string
        element.text = str(value).lower()

    elif isinstance(value, (int, float, Decimal)):
        element.text = str(value)

    elif isinstance(value, str):
        element.text = _xml_text(value)

    else:
        # Fallback to string representation
        element.text = _xml_text(str(value))


def _element_name(key: Any) -> str:
    """Return a dict key as an element name, rejecting keys XML cannot hold."""
    name = str(key)
    if not _XML_NAME.fullmatch(name):
        raise ValueError(f"Dict key {name!r} is not a valid XML element name")
    return name


def _xml_text(text: str) -> str:
    """Check text holds only characters allowed in XML 1.0."""
    match = _ILLEGAL_XML_CHARS.search(text)
    if match:
        raise ValueError(f"Text contains a character not allowed in XML: {match.group()!r}")
    return text


def unwrap_optional(tp: Any) -> Any:
    """Return X for ``X | None`` / ``Optional[X]``, otherwise tp unchanged."""
    if get_origin(tp) in (Union, UnionType):
        args = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def model_slot(declared: Any) -> type[BaseModel] | None:
    """Return the model class a slot is declared as, if it is exactly one."""
    tp = unwrap_optional(declared)
    return tp if is_model_class(tp) else None


def container_arg(declared: Any, origins: type | tuple, index: int) -> Any:
    """Extract an element type from a list/tuple/dict type hint."""
    tp = unwrap_optional(declared)
    origin = get_origin(tp)
    if origin is None or not isinstance(origin, type) or not issubclass(origin, origins):
        return None
    args = get_args(tp)
    if len(args) > index:
        return args[index]
    return None


def _indent(element: ET.Element, unit: str, level: int = 0) -> None:
    """Add pretty-printing indentation to XML tree.

    Modifies the tree in-place by adding text and tail attributes.
    """
    indent_str = "\n" + unit * level
    if len(element):  # Has children
        if not element.text or not element.text.strip():
            element.text = indent_str + unit
        if not element.tail or not element.tail.strip():
            element.tail = indent_str
        for child in element:
            _indent(child, unit, level + 1)
        if not child.tail or not child.tail.strip():
            child.tail = indent_str
    else:  # Leaf element
        if level and (not element.tail or not element.tail.strip()):
            element.tail = indent_str
