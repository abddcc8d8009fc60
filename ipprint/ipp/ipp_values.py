from typing import Any, ClassVar, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import IntEnum
import struct

# Etiquetas delimitadoras de grupo IPP (RFC 8010 3.5.1)
class IPPGroupTag(IntEnum):
    OPERATION_ATTRIBUTES_TAG = 0x01
    JOB_ATTRIBUTES_TAG = 0x02
    END_OF_ATTRIBUTES_TAG = 0x03
    PRINTER_ATTRIBUTES_TAG = 0x04
    UNSUPPORTED_ATTRIBUTES_TAG = 0x05
    SUBSCRIPTION_ATTRIBUTES_TAG = 0x06
    EVENT_NOTIFICATION_ATTRIBUTES_TAG = 0x07
    RESOURCE_ATTRIBUTES_TAG = 0x08
    DOCUMENT_ATTRIBUTES_TAG = 0x09
    SYSTEM_ATTRIBUTES_TAG = 0x0a

# Etiquetas de valor IPP (RFC 8010 3.5.2)
class IPPTag(IntEnum):
    # Fuera de banda
    UNSUPPORTED = 0x10
    DEFAULT = 0x11
    UNKNOWN = 0x12
    NO_VALUE = 0x13
    NOT_SETTABLE = 0x15
    DELETE_ATTRIBUTE = 0x16
    ADMIN_DEFINE = 0x17

    # Enteros
    INTEGER = 0x21
    BOOLEAN = 0x22
    ENUM = 0x23

    # Cadenas de octetos
    OCTET_STRING = 0x30
    DATETIME = 0x31
    RESOLUTION = 0x32
    RANGE_OF_INTEGER = 0x33
    BEGIN_COLLECTION = 0x34
    TEXT_WITH_LANGUAGE = 0x35
    NAME_WITH_LANGUAGE = 0x36
    END_COLLECTION = 0x37

    # Cadenas de caracteres
    TEXT_WITHOUT_LANGUAGE = 0x41
    NAME_WITHOUT_LANGUAGE = 0x42
    KEYWORD = 0x44
    URI = 0x45
    URI_SCHEME = 0x46
    CHARSET = 0x47
    NATURAL_LANGUAGE = 0x48
    MIME_MEDIA_TYPE = 0x49
    MEMBER_ATTR_NAME = 0x4a

OUT_OF_BAND_TAGS = frozenset({
    IPPTag.UNSUPPORTED,
    IPPTag.DEFAULT,
    IPPTag.UNKNOWN,
    IPPTag.NO_VALUE,
    IPPTag.NOT_SETTABLE,
    IPPTag.DELETE_ATTRIBUTE,
    IPPTag.ADMIN_DEFINE,
})

# Unidades de resolución (RFC 8011 5.1.16)
RESOLUTION_DPI = 3
RESOLUTION_DPCM = 4

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

# Enteros IPP: con signo de 32 bits
def _check_int32(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"{name} {value} is outside the signed 32-bit range")

class IPPValue:
    """Base de todo valor de atributo IPP.

    La etiqueta de un valor es propiedad de clase de su variante, un valor
    nunca necesita que le digan cómo se codifica. ``encode`` retorna solo los bytes
    del valor; el codec escribe etiqueta, nombre y largos alrededor.
    """

    tag: ClassVar[IPPTag]

    def encode(self) -> bytes:
        raise NotImplementedError

    def to_python(self) -> Any:
        raise NotImplementedError

@dataclass(frozen=True)
class IntegerValue(IPPValue):
    value: int
    tag: ClassVar[IPPTag] = IPPTag.INTEGER

    def __post_init__(self):
        _check_int32("integer", self.value)

    def encode(self) -> bytes:
        return struct.pack(">i", self.value)

    def to_python(self) -> Any:
        return self.value

@dataclass(frozen=True)
class BooleanValue(IPPValue):
    value: bool
    tag: ClassVar[IPPTag] = IPPTag.BOOLEAN

    def encode(self) -> bytes:
        return b"\x01" if self.value else b"\x00"

    def to_python(self) -> Any:
        return self.value

@dataclass(frozen=True)
class EnumValue(IPPValue):
    value: int
    tag: ClassVar[IPPTag] = IPPTag.ENUM

    def __post_init__(self):
        _check_int32("enum", self.value)

    def encode(self) -> bytes:
        return struct.pack(">i", self.value)

    def to_python(self) -> Any:
        return self.value

# Texto y nombre llevan idioma opcional; con idioma se usa la etiqueta
# with-language y el valor es [len][idioma][len][texto].
@dataclass(frozen=True)
class TextValue(IPPValue):
    text: str
    language: Optional[str] = None
    charset: str = "utf-8"
    tag: ClassVar[IPPTag] = IPPTag.TEXT_WITHOUT_LANGUAGE
    language_tag: ClassVar[IPPTag] = IPPTag.TEXT_WITH_LANGUAGE

    @property
    def wire_tag(self) -> IPPTag:
        return self.language_tag if self.language is not None else self.tag

    def encode(self) -> bytes:
        text_bytes = self.text.encode(self.charset)
        if self.language is None:
            return text_bytes
        lang_bytes = self.language.encode("ascii")
        return (
            struct.pack(">H", len(lang_bytes)) + lang_bytes +
            struct.pack(">H", len(text_bytes)) + text_bytes
        )

    def to_python(self) -> Any:
        return self.text

@dataclass(frozen=True)
class NameValue(TextValue):
    tag: ClassVar[IPPTag] = IPPTag.NAME_WITHOUT_LANGUAGE
    language_tag: ClassVar[IPPTag] = IPPTag.NAME_WITH_LANGUAGE

# Variantes US-ASCII, solo difieren en la etiqueta
@dataclass(frozen=True)
class _AsciiValue(IPPValue):
    text: str

    def encode(self) -> bytes:
        return self.text.encode("ascii")

    def to_python(self) -> Any:
        return self.text

@dataclass(frozen=True)
class KeywordValue(_AsciiValue):
    tag: ClassVar[IPPTag] = IPPTag.KEYWORD

@dataclass(frozen=True)
class UriValue(_AsciiValue):
    tag: ClassVar[IPPTag] = IPPTag.URI

    def encode(self) -> bytes:
        # Las URI pueden traer caracteres IRI; RFC 8010 permite UTF-8
        return self.text.encode("utf-8")

@dataclass(frozen=True)
class UriSchemeValue(_AsciiValue):
    tag: ClassVar[IPPTag] = IPPTag.URI_SCHEME

@dataclass(frozen=True)
class CharsetValue(_AsciiValue):
    tag: ClassVar[IPPTag] = IPPTag.CHARSET

@dataclass(frozen=True)
class NaturalLanguageValue(_AsciiValue):
    tag: ClassVar[IPPTag] = IPPTag.NATURAL_LANGUAGE

@dataclass(frozen=True)
class MimeMediaTypeValue(_AsciiValue):
    tag: ClassVar[IPPTag] = IPPTag.MIME_MEDIA_TYPE

@dataclass(frozen=True)
class OctetStringValue(IPPValue):
    data: bytes
    tag: ClassVar[IPPTag] = IPPTag.OCTET_STRING

    def encode(self) -> bytes:
        return bytes(self.data)

    def to_python(self) -> Any:
        return self.data

# DateAndTime de RFC 2579, siempre 11 octetos
@dataclass(frozen=True)
class DateTimeValue(IPPValue):
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    deci_seconds: int = 0
    utc_direction: str = "+"
    utc_hours: int = 0
    utc_minutes: int = 0
    tag: ClassVar[IPPTag] = IPPTag.DATETIME

    def encode(self) -> bytes:
        return struct.pack(
            ">HBBBBBBcBB",
            self.year, self.month, self.day, self.hour, self.minute,
            self.second, self.deci_seconds, self.utc_direction.encode("ascii"),
            self.utc_hours, self.utc_minutes,
        )

    def to_python(self) -> Any:
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}T"
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
            f"{self.utc_direction}{self.utc_hours:02d}:{self.utc_minutes:02d}"
        )

@dataclass(frozen=True)
class ResolutionValue(IPPValue):
    cross_feed: int
    feed: int
    units: int = RESOLUTION_DPI
    tag: ClassVar[IPPTag] = IPPTag.RESOLUTION

    def __post_init__(self):
        _check_int32("cross-feed resolution", self.cross_feed)
        _check_int32("feed resolution", self.feed)
        if isinstance(self.units, bool) or not isinstance(self.units, int) or not -128 <= self.units <= 127:
            raise ValueError(f"Resolution units {self.units!r} do not fit in one signed byte")

    def encode(self) -> bytes:
        return struct.pack(">iib", self.cross_feed, self.feed, self.units)

    def to_python(self) -> Any:
        unit = "dpi" if self.units == RESOLUTION_DPI else "dpcm"
        return f"{self.cross_feed}x{self.feed}{unit}"

@dataclass(frozen=True)
class RangeOfIntegerValue(IPPValue):
    lower: int
    upper: int
    tag: ClassVar[IPPTag] = IPPTag.RANGE_OF_INTEGER

    def __post_init__(self):
        _check_int32("range lower bound", self.lower)
        _check_int32("range upper bound", self.upper)

    def encode(self) -> bytes:
        return struct.pack(">ii", self.lower, self.upper)

    def to_python(self) -> Any:
        return (self.lower, self.upper)

# Valores fuera de banda sin contenido; la etiqueta es el valor
@dataclass(frozen=True)
class OutOfBandValue(IPPValue):
    out_of_band_tag: IPPTag

    def __post_init__(self):
        if self.out_of_band_tag not in OUT_OF_BAND_TAGS:
            raise ValueError(f"Not an out-of-band tag: 0x{int(self.out_of_band_tag):02x}")

    @property
    def wire_tag(self) -> IPPTag:
        return self.out_of_band_tag

    def encode(self) -> bytes:
        return b""

    def to_python(self) -> Any:
        return self.out_of_band_tag.name.lower().replace("_", "-")

# Miembros ordenados; cada valor puede ser a su vez arreglo o colección
@dataclass(frozen=True)
class CollectionValue(IPPValue):
    members: Dict[str, IPPValue] = field(default_factory=dict)
    tag: ClassVar[IPPTag] = IPPTag.BEGIN_COLLECTION

    def encode(self) -> bytes:
        # Los miembros los escribe el codec después de begCollection
        return b""

    def to_python(self) -> Any:
        return {name: value.to_python() for name, value in self.members.items()}

    def __getitem__(self, name: str) -> IPPValue:
        return self.members[name]

# Atributo multivalor: el primer valor lleva el nombre, el resto nombre vacío
@dataclass(frozen=True)
class ArrayValue(IPPValue):
    values: Tuple[IPPValue, ...]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))
        if not self.values:
            raise ValueError("An IPP attribute needs at least one value")
        # Un solo valor se codifica y decodifica como escalar
        if len(self.values) == 1:
            raise ValueError("An IPP array needs at least two values; use the value itself")
        if any(isinstance(v, ArrayValue) for v in self.values):
            raise ValueError("IPP arrays cannot be nested")

    @property
    def wire_tag(self) -> IPPTag:
        return wire_tag(self.values[0])

    def encode(self) -> bytes:
        raise TypeError("Arrays are encoded value by value")

    def to_python(self) -> Any:
        return [value.to_python() for value in self.values]

    def __iter__(self):
        return iter(self.values)

    def __len__(self):
        return len(self.values)

# Etiqueta que se escribe en el cable para un valor
def wire_tag(value: IPPValue) -> IPPTag:
    tag = getattr(value, "wire_tag", None)
    return tag if tag is not None else value.tag

# Convierte datos Python (bool, int, str, dict, list) en valores IPP
def value_from_python(obj: Any) -> IPPValue:
    if isinstance(obj, IPPValue):
        return obj
    if isinstance(obj, bool):
        return BooleanValue(obj)
    if isinstance(obj, int):
        return IntegerValue(obj)
    if isinstance(obj, str):
        return KeywordValue(obj)
    if isinstance(obj, dict):
        return CollectionValue({str(k): value_from_python(v) for k, v in obj.items()})
    if isinstance(obj, (list, tuple)):
        values = [value_from_python(v) for v in obj]
        return values[0] if len(values) == 1 else ArrayValue(tuple(values))
    raise TypeError(f"Cannot convert {type(obj).__name__} to an IPP value")

# Atributo: nombre (sensible a mayúsculas) más un valor
@dataclass(frozen=True)
class IPPAttribute:
    name: str
    value: IPPValue

    @property
    def values(self) -> List[IPPValue]:
        if isinstance(self.value, ArrayValue):
            return list(self.value.values)
        return [self.value]

    def __repr__(self):
        return f"IPPAttribute(name='{self.name}', value={self.value!r})"

@dataclass(frozen=True)
class IPPAttributeGroup:
    tag: IPPGroupTag
    attributes: Tuple[IPPAttribute, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "attributes", tuple(self.attributes))

    # Primer atributo con ese nombre, o None
    def get(self, name: str) -> Optional[IPPAttribute]:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def __iter__(self):
        return iter(self.attributes)

    def __len__(self):
        return len(self.attributes)
