"""Tests for converting values to and from XML files and strings."""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from pydantic import BaseModel

from xmlbridge import (
    INVALID_OBJECT,
    DeserializationError,
    SerializeResult,
    XMLBridge,
    file_to_value,
    text_to_value,
    try_value_to_file,
    try_value_to_text,
    value_to_file,
    value_to_text,
)


class Person(BaseModel):
    name: str
    age: int


class Measurement(BaseModel):
    label: str
    value: float
    exact: Decimal | None = None


class Pet(BaseModel):
    name: str


class Cat(Pet):
    indoor: bool


class Household(BaseModel):
    owner: Person
    pets: list[Pet] = []


class CompactBridge(XMLBridge):
    indent = None
    xml_declaration = False


class LiteralBridge(XMLBridge):
    normalize_decimal_commas = False


# --- text ---


def test_text_roundtrip():
    """Test a value survives value_to_text/text_to_value."""
    household = Household(owner=Person(name="Ann", age=41), pets=[Pet(name="Rex")])
    xml = value_to_text(household)

    assert xml.startswith('<?xml version="1.0" encoding="utf-8"?>')
    assert text_to_value(xml, Household) == household


def test_text_roundtrip_with_extra_types():
    """Test polymorphic members need extra_types in both directions."""
    household = Household(owner=Person(name="Ann", age=41), pets=[Cat(name="Tom", indoor=True)])
    xml = value_to_text(household, extra_types=[Cat])

    assert 'xsi:type="Cat"' in xml
    restored = text_to_value(xml, Household, extra_types=[Cat])
    assert restored == household
    assert isinstance(restored.pets[0], Cat)


def test_text_to_value_keeps_commas():
    """Test no comma normalization is applied to text input."""
    xml = "<Measurement><label>a, b</label><value>1.5</value></Measurement>"
    assert text_to_value(xml, Measurement).label == "a, b"


@pytest.mark.parametrize("empty", ["", None])
def test_text_to_value_empty_input(empty):
    """Test empty and None input behave as an empty document."""
    with pytest.raises(DeserializationError, match="Root element is missing"):
        text_to_value(empty, Person)


def test_text_to_value_propagates_errors():
    """Test malformed XML is raised, not swallowed."""
    with pytest.raises(DeserializationError):
        text_to_value("<Person><name>Ann</name>", Person)


def test_value_to_text_sentinel(caplog):
    """Test an unserializable value yields the sentinel string and a log entry."""
    with caplog.at_level(logging.ERROR, logger="xmlbridge"):
        assert value_to_text(object()) == "Invalid object"

    assert INVALID_OBJECT == "Invalid object"
    assert "Could not create XML object" in caplog.text


def test_value_to_text_undeclared_type():
    """Test an undeclared subclass yields the sentinel string."""
    household = Household(owner=Person(name="Ann", age=41), pets=[Cat(name="Tom", indoor=True)])
    assert value_to_text(household) == "Invalid object"


def test_value_to_text_with_base_shape():
    """Test serializing under a base shape and reading it back."""
    xml = value_to_text(Cat(name="Tom", indoor=False), extra_types=[Cat], shape=Pet)

    assert "<Pet " in xml
    pet = text_to_value(xml, Pet, extra_types=[Cat])
    assert pet == Cat(name="Tom", indoor=False)


# --- tagged results ---


def test_try_value_to_text_success():
    """Test the tagged result on success."""
    result = try_value_to_text(Person(name="Ann", age=41))

    assert isinstance(result, SerializeResult)
    assert result.ok
    assert result.error is None
    assert "<name>Ann</name>" in result.text


def test_try_value_to_text_failure():
    """Test the tagged result on failure distinguishes it from output."""
    result = try_value_to_text(object())

    assert not result.ok
    assert result.text is None
    assert "Expected Pydantic BaseModel class or primitive type" in result.error


def test_try_value_to_file(xml_path):
    """Test the tagged file result carries the written text."""
    result = try_value_to_file(Person(name="Ann", age=41), xml_path)

    assert result.ok
    assert xml_path.read_text(encoding="utf-8") == result.text


# --- files ---


def test_file_roundtrip(xml_path):
    """Test a value survives value_to_file/file_to_value."""
    person = Person(name="Ann", age=41)

    assert value_to_file(person, xml_path) is True
    assert file_to_value(xml_path, Person) == person


def test_file_roundtrip_with_str_path(xml_path):
    """Test string paths are accepted."""
    person = Person(name="Ann", age=41)

    assert value_to_file(person, str(xml_path))
    assert file_to_value(str(xml_path), Person) == person


def test_file_roundtrip_decimal_values(xml_path):
    """Test decimal fields written with periods read back unchanged."""
    measurement = Measurement(label="length", value=3.25, exact=Decimal("3.250"))

    assert value_to_file(measurement, xml_path)
    assert file_to_value(xml_path, Measurement) == measurement


def test_file_to_value_normalizes_decimal_commas(xml_path):
    """Test commas become periods everywhere in the file text."""
    xml_path.write_text(
        "<Measurement><label>Hello, world</label><value>3,14</value></Measurement>",
        encoding="utf-8",
    )
    measurement = file_to_value(xml_path, Measurement)

    assert measurement.value == 3.14
    assert measurement.label == "Hello. world"


def test_decimal_comma_normalization_can_be_disabled(xml_path):
    """Test the preprocessing hook can be switched off."""
    xml_path.write_text(
        "<Measurement><label>Hello, world</label><value>3.14</value></Measurement>",
        encoding="utf-8",
    )
    assert LiteralBridge().file_to_value(xml_path, Measurement).label == "Hello, world"


def test_preprocess_file_text_override(xml_path):
    """Test subclasses can replace the preprocessing hook."""
    class UpperBridge(XMLBridge):
        def preprocess_file_text(self, text):
            return text.replace("ann", "ANN")

    xml_path.write_text("<Person><name>ann</name><age>1</age></Person>", encoding="utf-8")
    assert UpperBridge().file_to_value(xml_path, Person).name == "ANN"


def test_file_to_value_skips_bom(xml_path):
    """Test a UTF-8 byte order mark is ignored."""
    xml_path.write_bytes(b"\xef\xbb\xbf<Person><name>Ann</name><age>41</age></Person>")
    assert file_to_value(xml_path, Person) == Person(name="Ann", age=41)


def test_file_to_value_creates_missing_file(xml_path):
    """Test reading a missing file creates it empty and then fails."""
    assert not xml_path.exists()

    with pytest.raises(DeserializationError, match="Root element is missing"):
        file_to_value(xml_path, Person)

    assert xml_path.exists()
    assert xml_path.read_bytes() == b""


def test_file_to_value_missing_directory(tmp_path):
    """Test an unopenable path raises OSError."""
    with pytest.raises(OSError):
        file_to_value(tmp_path / "missing" / "data.xml", Person)


def test_file_to_value_propagates_validation_errors(xml_path):
    """Test invalid file contents are raised, not swallowed."""
    xml_path.write_text("<Person><name>Ann</name><age>old</age></Person>", encoding="utf-8")

    with pytest.raises(DeserializationError) as exc_info:
        file_to_value(xml_path, Person)

    assert "<age>old</age>" in exc_info.value.raw_xml


def test_value_to_file_unwritable_path(tmp_path, caplog):
    """Test writing into a missing directory returns False without raising."""
    target = tmp_path / "missing" / "data.xml"

    with caplog.at_level(logging.ERROR, logger="xmlbridge"):
        assert value_to_file(Person(name="Ann", age=41), target) is False

    assert not target.exists()
    assert "Could not serialize to file" in caplog.text


def test_value_to_file_overwrites_longer_content(xml_path):
    """Test an existing file is truncated before writing."""
    assert value_to_file(Household(owner=Person(name="A" * 200, age=1), pets=[Pet(name="Rex")]), xml_path)
    assert value_to_file(Person(name="Ann", age=41), xml_path)

    assert file_to_value(xml_path, Person) == Person(name="Ann", age=41)


def test_value_to_file_failure_keeps_existing_file(xml_path):
    """Test a value that cannot be serialized does not touch the file."""
    xml_path.write_text("<Person><name>Ann</name><age>41</age></Person>", encoding="utf-8")

    assert value_to_file(object(), xml_path) is False
    assert file_to_value(xml_path, Person) == Person(name="Ann", age=41)


def test_concurrent_calls_on_separate_files(tmp_path):
    """Test concurrent calls on different files do not interfere."""
    people = [Person(name=f"p{i}", age=i) for i in range(20)]

    def save_and_load(person):
        path = tmp_path / f"{person.name}.xml"
        assert value_to_file(person, path)
        return file_to_value(path, Person)

    with ThreadPoolExecutor(max_workers=4) as pool:
        assert list(pool.map(save_and_load, people)) == people


# --- configuration ---


def test_compact_bridge():
    """Test class attribute configuration."""
    xml = CompactBridge().value_to_text(Person(name="Ann", age=41))
    assert xml == "<Person><name>Ann</name><age>41</age></Person>"


def test_custom_invalid_object_text():
    """Test the sentinel string can be overridden."""
    class QuietBridge(XMLBridge):
        invalid_object_text = ""

    assert QuietBridge().value_to_text(object()) == ""


@pytest.mark.parametrize("indent", ["xx", 4])
def test_invalid_indent(indent):
    """Test indent must be whitespace or None."""
    class BadBridge(XMLBridge):
        pass

    BadBridge.indent = indent
    with pytest.raises(ValueError, match="indent must be None or a whitespace string"):
        BadBridge()


def test_invalid_object_text_must_be_string():
    """Test the sentinel must be a string."""
    class BadBridge(XMLBridge):
        invalid_object_text = None

    with pytest.raises(ValueError, match="invalid_object_text must be a string"):
        BadBridge()


def test_file_to_value_unsupported_shape(xml_path):
    """Test an unsupported shape is rejected before the file is created."""
    with pytest.raises(TypeError):
        file_to_value(xml_path, dict)

    assert not xml_path.exists()


class Tally(BaseModel):
    counts: dict[str, int]


def test_value_to_text_invalid_dict_key(caplog):
    """Test a dict key that is not an XML name yields the sentinel string."""
    with caplog.at_level(logging.ERROR, logger="xmlbridge"):
        assert value_to_text(Tally(counts={"two words": 1})) == "Invalid object"

    assert "is not a valid XML element name" in caplog.text


def test_value_to_text_control_character():
    """Test text XML cannot represent yields the sentinel string."""
    assert value_to_text(Person(name="a\x01b", age=1)) == "Invalid object"


def test_value_to_file_control_character(xml_path):
    """Test text XML cannot represent is reported as a failed save."""
    assert value_to_file(Person(name="a\x01b", age=1), xml_path) is False
    assert not xml_path.exists()


def test_dict_with_item_key_text_roundtrip():
    """Test a dict keyed by item reads back as a dict."""
    tally = Tally(counts={"item": 1})
    assert text_to_value(value_to_text(tally), Tally) == tally


def test_file_roundtrip_keeps_carriage_returns(xml_path):
    """Test carriage returns in strings survive a file roundtrip."""
    person = Person(name="line one\r\nline two", age=1)

    assert value_to_file(person, xml_path)
    assert file_to_value(xml_path, Person) == person
