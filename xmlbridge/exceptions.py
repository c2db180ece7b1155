"""Exception classes for xmlbridge."""


class XMLBridgeError(Exception):
    """Base exception for all xmlbridge errors."""


class DeserializationError(XMLBridgeError):
    """Raised when XML text cannot be turned into a value of the requested shape.

    Covers empty documents, malformed XML, an unexpected root element,
    unknown ``xsi:type`` discriminators and pydantic validation failures.
    The underlying error is chained as ``__cause__``.

    Attributes:
        message: Human-readable error description
        raw_xml: The XML text that failed to deserialize (optional)
    """

    def __init__(self, message: str, raw_xml: str | None = None):
        super().__init__(message)
        self.raw_xml = raw_xml


class UnknownTypeError(XMLBridgeError):
    """Raised when serializing a model whose class was not declared.

    A model stored in a slot whose declared type is a different class
    must be listed in ``extra_types`` (or be reachable from the shape's
    annotations) so it can be written with an ``xsi:type`` discriminator.

    Attributes:
        type_name: Name of the undeclared class
    """

    def __init__(self, type_name: str):
        super().__init__(
            f"The type {type_name} was not expected. "
            "Use extra_types to declare types not known statically."
        )
        self.type_name = type_name


class TypeConflictError(XMLBridgeError):
    """Raised when two different classes share the same XML type name."""
