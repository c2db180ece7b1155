"""Convert XML strings to values."""

import xml.etree.ElementTree as ET
from typing import Any, get_origin
from pydantic import BaseModel, TypeAdapter

from xmlbridge.exceptions import DeserializationError
from xmlbridge.registry import TypeRegistry, build_registry, is_model_class
from xmlbridge.serialization.xml_encoder import (
    XSI_TYPE,
    container_arg,
    model_slot,
    root_tag_for,
    unwrap_optional,
)


def xml_to_value(
    xml_input: str | bytes | None,
    shape: type,
    registry: TypeRegistry | None = None,
) -> Any:
    """Parse XML and validate it against ``shape``.

    Args:
        xml_input: XML text or encoded bytes to parse (None is treated as empty)
        shape: Pydantic model class or primitive type to produce
        registry: Known model classes; built from ``shape`` when omitted

    Returns:
        Instance of shape (or of a registered subclass named by ``xsi:type``)

    Raises:
        TypeError: If shape is neither a Pydantic model class nor a primitive
        DeserializationError: If the document is empty or malformed, has an
            unexpected root element, or does not validate against shape

    Example:
        >>> from pydantic import BaseModel
        >>> class Person(BaseModel):
        ...     name: str
        ...     age: int
        >>> xml = '<Person><name>Alice</name><age>30</age></Person>'
        >>> person = xml_to_value(xml, Person)
        >>> person.name
        'Alice'
    """
    root_tag = root_tag_for(shape)
    if registry is None:
        registry = build_registry(shape)

    if xml_input is None:
        xml_input = ""
    if isinstance(xml_input, bytes):
        raw_xml = xml_input.decode("utf-8", errors="replace")
    else:
        raw_xml = xml_input

    if not raw_xml.strip():
        raise DeserializationError("There is an error in the XML document: Root element is missing.", raw_xml=raw_xml)

    try:
        root = ET.fromstring(xml_input)
    except ET.ParseError as exc:
        raise DeserializationError(f"There is an error in the XML document: {exc}", raw_xml=raw_xml) from exc

    if root.tag != root_tag:
        raise DeserializationError(f"<{root.tag}> was not expected, expected <{root_tag}>.", raw_xml=raw_xml)

    try:
        if is_model_class(shape):
            return _element_to_value(root, shape, registry)
        # Primitive roots are converted by pydantic's lax coercion
        text = root.text or ""
        return TypeAdapter(shape).validate_python(text if shape is str else text.strip())
    except DeserializationError as exc:
        exc.raw_xml = raw_xml
        raise
    except (ValueError, ArithmeticError) as exc:
        # pydantic's ValidationError is a ValueError
        raise DeserializationError(f"There is an error in the XML document: {exc}", raw_xml=raw_xml) from exc


def _element_to_dict(
    element: ET.Element,
    registry: TypeRegistry,
    model_class: type[BaseModel] | None = None,
    value_type: Any = None,
) -> dict:
    """Convert an XML element to a dictionary.

    Args:
        element: The XML element to convert
        registry: Known model classes for ``xsi:type`` lookups
        model_class: Optional Pydantic model to guide type conversion
        value_type: Type of every value when converting a typed dict

    Returns:
        Dictionary representation of the XML element
    """
    result = {}

    field_types = {}
    if model_class is not None:
        for field_name, field_info in model_class.model_fields.items():
            field_types[field_name] = field_info.annotation

    for child in element:
        field_name = child.tag
        field_type = field_types.get(field_name) if model_class is not None else value_type

        value = _element_to_value(child, field_type, registry)

        # Handle duplicate tags (convert to list)
        if field_name in result:
            if not isinstance(result[field_name], list):
                result[field_name] = [result[field_name]]
            result[field_name].append(value)
        else:
            result[field_name] = value

    return result


def _element_to_value(element: ET.Element, field_type: Any, registry: TypeRegistry) -> Any:
    """Convert an XML element to a Python value.

    Leaf text is returned as a string; pydantic coerces it to the field
    type when the enclosing model is validated.
    """
    model_class = _resolve_model_class(element, field_type, registry)
    if model_class is not None:
        # Tags are field names, so aliased fields are matched by name
        data = _element_to_dict(element, registry, model_class=model_class)
        return model_class.model_validate(data, by_name=True)

    has_children = len(element) > 0
    text = element.text or ""
    target = unwrap_optional(field_type)
    origin = get_origin(target) or target

    if not has_children and not text.strip():
        if origin in (list, tuple, set, frozenset):
            return []
        if origin is dict:
            return {}
        if target is str:
            return text
        return None

    if has_children:
        # All <item> children indicate a list, unless the slot is a dict
        if origin is not dict and all(child.tag == "item" for child in element):
            item_type = container_arg(field_type, (list, tuple, set, frozenset), 0)
            return [_element_to_value(child, item_type, registry) for child in element]

        return _element_to_dict(element, registry, value_type=container_arg(field_type, dict, 1))

    if target is str:
        return text
    return text.strip()


def _resolve_model_class(
    element: ET.Element,
    field_type: Any,
    registry: TypeRegistry,
) -> type[BaseModel] | None:
    """Pick the model class for an element from its slot and ``xsi:type``."""
    slot = model_slot(field_type)
    type_name = element.get(XSI_TYPE)
    if type_name is None:
        return slot

    cls = registry.resolve(type_name)
    if cls is None:
        raise DeserializationError(f"The specified type '{type_name}' is not recognized.")
    if slot is not None and not issubclass(cls, slot):
        raise DeserializationError(f"The specified type '{type_name}' is not a subtype of '{slot.__name__}'.")
    return cls
