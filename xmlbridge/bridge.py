"""Convert values to and from XML files and strings.

Two error policies coexist here. The serialize direction
(``value_to_file``, ``value_to_text``) never raises: failures are logged and
reported as ``False`` / ``"Invalid object"``. The deserialize direction
(``file_to_value``, ``text_to_value``) lets errors propagate. Callers that
need to tell a failed serialization apart from real output should use
``try_value_to_text`` / ``try_value_to_file``.
"""

import logging
import os
from typing import Any, Iterable

from xmlbridge.registry import build_registry
from xmlbridge.serialization import value_to_xml, xml_to_value
from xmlbridge.serialization.xml_encoder import root_tag_for
from xmlbridge.types import SerializeResult

logger = logging.getLogger("xmlbridge")

INVALID_OBJECT = "Invalid object"


class XMLBridge:
    """Converts values to and from XML text and files.

    Class attributes (override in subclass):
        xml_declaration: Start output with ``<?xml version="1.0" encoding="utf-8"?>``
        indent: Indentation unit for pretty-printing, None for compact output
        normalize_decimal_commas: Replace every ``,`` with ``.`` in file text
            before deserializing (see ``preprocess_file_text``)
        invalid_object_text: Returned by ``value_to_text`` when serialization fails

    Example:
        >>> class CompactBridge(XMLBridge):
        ...     indent = None
        ...     xml_declaration = False
        >>> bridge = CompactBridge()
        >>> bridge.value_to_text(Person(name="Alice", age=30))
        '<Person><name>Alice</name><age>30</age></Person>'
    """

    xml_declaration: bool = True
    indent: str | None = "  "
    normalize_decimal_commas: bool = True
    invalid_object_text: str = INVALID_OBJECT

    def __init__(self):
        if self.indent is not None and (not isinstance(self.indent, str) or self.indent.strip()):
            raise ValueError(f"indent must be None or a whitespace string, got {self.indent!r}")
        if not isinstance(self.invalid_object_text, str):
            raise ValueError(
                f"invalid_object_text must be a string, got {type(self.invalid_object_text).__name__}"
            )

    # Deserialize direction: errors propagate

    def file_to_value(self, path: str | os.PathLike, shape: type, extra_types: Iterable[type] | None = None) -> Any:
        """Read an XML file and deserialize its contents to an instance of ``shape``.

        The file is opened for reading and writing, so a missing file is
        created (empty) as a side effect, and then fails to deserialize.

        The file text goes through ``preprocess_file_text`` first. By default
        that replaces every comma with a period, which also rewrites commas
        in ordinary text fields.

        Args:
            path: The path of the file to read
            shape: Pydantic model class or primitive type to produce
            extra_types: Extra model classes to resolve ``xsi:type`` discriminators

        Returns:
            The deserialized value

        Raises:
            DeserializationError: If the contents are not valid XML for shape
            OSError: If the file cannot be opened
            TypeError: If shape is neither a Pydantic model class nor a primitive
        """
        # Reject unsupported shapes before the file is touched
        root_tag_for(shape)
        registry = build_registry(shape, extra_types)

        with open(path, "a+", encoding="utf-8-sig") as fh:
            fh.seek(0)
            contents = fh.read()
        logger.debug("Read %d characters from %s", len(contents), path)

        contents = self.preprocess_file_text(contents)
        return xml_to_value(contents.encode("utf-8"), shape, registry)

    def text_to_value(self, xml_text: str | None, shape: type, extra_types: Iterable[type] | None = None) -> Any:
        """Deserialize XML text to an instance of ``shape``.

        None is treated as an empty document. No comma normalization is
        applied.

        Raises:
            DeserializationError: If the text is empty or not valid XML for shape
        """
        registry = build_registry(shape, extra_types)
        return xml_to_value((xml_text or "").encode("utf-8"), shape, registry)

    def preprocess_file_text(self, text: str) -> str:
        """Normalize raw file text before it is parsed.

        The default rewrites decimal commas (``3,14``) to periods. It works on
        the raw text, so it is lossy: commas inside string fields become
        periods too. Override to change this, or set
        ``normalize_decimal_commas = False`` to turn it off.
        """
        if not self.normalize_decimal_commas:
            return text
        return text.replace(",", ".")

    # Serialize direction: errors are logged and reported, never raised

    def try_value_to_text(
        self,
        value: Any,
        extra_types: Iterable[type] | None = None,
        shape: type | None = None,
    ) -> SerializeResult:
        """Serialize a value to XML text without raising.

        Returns:
            SerializeResult with ``text`` set on success, ``error`` on failure
        """
        try:
            text = self._serialize(value, extra_types, shape)
        except Exception as e:
            logger.error("Could not create XML object: %s", e)
            return SerializeResult(error=str(e))
        return SerializeResult(text=text)

    def try_value_to_file(
        self,
        value: Any,
        path: str | os.PathLike,
        extra_types: Iterable[type] | None = None,
        shape: type | None = None,
    ) -> SerializeResult:
        """Serialize a value and write it to ``path`` without raising.

        The value is serialized before the file is opened, so a value that
        cannot be serialized leaves an existing file untouched.

        Returns:
            SerializeResult with the written ``text`` on success, ``error`` on failure
        """
        try:
            text = self._serialize(value, extra_types, shape)
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(text)
        except Exception as e:
            logger.error("Could not serialize to file: %s", e)
            return SerializeResult(error=str(e))
        logger.debug("Wrote %d characters to %s", len(text), path)
        return SerializeResult(text=text)

    def value_to_text(
        self,
        value: Any,
        extra_types: Iterable[type] | None = None,
        shape: type | None = None,
    ) -> str:
        """Serialize a value to XML text.

        Returns:
            The XML text, or ``invalid_object_text`` if serialization failed.
            Use ``try_value_to_text`` to tell the two apart.
        """
        result = self.try_value_to_text(value, extra_types, shape)
        return result.text if result.ok else self.invalid_object_text

    def value_to_file(
        self,
        value: Any,
        path: str | os.PathLike,
        extra_types: Iterable[type] | None = None,
        shape: type | None = None,
    ) -> bool:
        """Serialize a value and write it to ``path`` (created or overwritten).

        Returns:
            True on success, False if serialization or writing failed
        """
        return self.try_value_to_file(value, path, extra_types, shape).ok

    def _serialize(self, value: Any, extra_types: Iterable[type] | None, shape: type | None) -> str:
        if shape is None:
            shape = type(value)
        registry = build_registry(shape, extra_types)
        return value_to_xml(
            value,
            registry,
            shape=shape,
            indent=self.indent,
            xml_declaration=self.xml_declaration,
        )


_default_bridge = XMLBridge()


def file_to_value(path: str | os.PathLike, shape: type, extra_types: Iterable[type] | None = None) -> Any:
    """Read an XML file into an instance of ``shape``. See ``XMLBridge.file_to_value``."""
    return _default_bridge.file_to_value(path, shape, extra_types)


def value_to_file(
    value: Any,
    path: str | os.PathLike,
    extra_types: Iterable[type] | None = None,
    shape: type | None = None,
) -> bool:
    """Write a value to an XML file, returning False on failure."""
    return _default_bridge.value_to_file(value, path, extra_types, shape)


def text_to_value(xml_text: str | None, shape: type, extra_types: Iterable[type] | None = None) -> Any:
    """Deserialize XML text into an instance of ``shape``."""
    return _default_bridge.text_to_value(xml_text, shape, extra_types)


def value_to_text(value: Any, extra_types: Iterable[type] | None = None, shape: type | None = None) -> str:
    """Serialize a value to XML text, returning ``"Invalid object"`` on failure."""
    return _default_bridge.value_to_text(value, extra_types, shape)


def try_value_to_text(
    value: Any,
    extra_types: Iterable[type] | None = None,
    shape: type | None = None,
) -> SerializeResult:
    return _default_bridge.try_value_to_text(value, extra_types, shape)


def try_value_to_file(
    value: Any,
    path: str | os.PathLike,
    extra_types: Iterable[type] | None = None,
    shape: type | None = None,
) -> SerializeResult:
    return _default_bridge.try_value_to_file(value, path, extra_types, shape)
