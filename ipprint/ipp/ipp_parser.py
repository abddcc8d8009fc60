from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
from enum import IntEnum
import logging
import struct
import io

from .ipp_values import (
    IPPGroupTag, IPPTag, IPPValue, IPPAttribute, IPPAttributeGroup,
    OUT_OF_BAND_TAGS, ArrayValue, BooleanValue, CharsetValue, CollectionValue,
    DateTimeValue, EnumValue, IntegerValue, KeywordValue, MimeMediaTypeValue,
    NameValue, NaturalLanguageValue, OctetStringValue, OutOfBandValue,
    RangeOfIntegerValue, ResolutionValue, TextValue, UriSchemeValue, UriValue,
    wire_tag,
)

logger = logging.getLogger(__name__)

class MalformedMessage(Exception):
    pass

# Operaciones IPP que emite este cliente
class IPPOperation(IntEnum):
    PRINT_JOB = 0x0002
    GET_PRINTER_ATTRIBUTES = 0x000b

# Códigos de estado IPP
class IPPStatusCode(IntEnum):
    # Éxito
    SUCCESSFUL_OK = 0x0000
    SUCCESSFUL_OK_IGNORED_OR_SUBSTITUTED_ATTRIBUTES = 0x0001
    SUCCESSFUL_OK_CONFLICTING_ATTRIBUTES = 0x0002

    # Errores del cliente
    CLIENT_ERROR_BAD_REQUEST = 0x0400
    CLIENT_ERROR_FORBIDDEN = 0x0401
    CLIENT_ERROR_NOT_AUTHENTICATED = 0x0402
    CLIENT_ERROR_NOT_AUTHORIZED = 0x0403
    CLIENT_ERROR_NOT_POSSIBLE = 0x0404
    CLIENT_ERROR_TIMEOUT = 0x0405
    CLIENT_ERROR_NOT_FOUND = 0x0406
    CLIENT_ERROR_GONE = 0x0407
    CLIENT_ERROR_REQUEST_ENTITY_TOO_LARGE = 0x0408
    CLIENT_ERROR_REQUEST_VALUE_TOO_LONG = 0x0409
    CLIENT_ERROR_DOCUMENT_FORMAT_NOT_SUPPORTED = 0x040a
    CLIENT_ERROR_ATTRIBUTES_OR_VALUES_NOT_SUPPORTED = 0x040b
    CLIENT_ERROR_URI_SCHEME_NOT_SUPPORTED = 0x040c
    CLIENT_ERROR_CHARSET_NOT_SUPPORTED = 0x040d
    CLIENT_ERROR_CONFLICTING_ATTRIBUTES = 0x040e
    CLIENT_ERROR_COMPRESSION_NOT_SUPPORTED = 0x040f
    CLIENT_ERROR_COMPRESSION_ERROR = 0x0410
    CLIENT_ERROR_DOCUMENT_FORMAT_ERROR = 0x0411
    CLIENT_ERROR_DOCUMENT_ACCESS_ERROR = 0x0412

    # Errores del servidor
    SERVER_ERROR_INTERNAL_ERROR = 0x0500
    SERVER_ERROR_OPERATION_NOT_SUPPORTED = 0x0501
    SERVER_ERROR_SERVICE_UNAVAILABLE = 0x0502
    SERVER_ERROR_VERSION_NOT_SUPPORTED = 0x0503
    SERVER_ERROR_DEVICE_ERROR = 0x0504
    SERVER_ERROR_TEMPORARY_ERROR = 0x0505
    SERVER_ERROR_NOT_ACCEPTING_JOBS = 0x0506
    SERVER_ERROR_BUSY = 0x0507
    SERVER_ERROR_JOB_CANCELED = 0x0508
    SERVER_ERROR_MULTIPLE_DOCUMENT_JOBS_NOT_SUPPORTED = 0x0509

# Éxito es 0x0000-0x00FF; lo demás es informativo o error
def is_success(status_code: int) -> bool:
    return 0x0000 <= status_code <= 0x00FF

# Nombre legible del código de estado, o hexadecimal si no se conoce
def status_name(status_code: int) -> str:
    try:
        return IPPStatusCode(status_code).name.lower().replace("_", "-")
    except ValueError:
        return f"0x{status_code:04x}"

# Mensaje IPP: encabezado, grupos de atributos en orden y datos del documento.
# El campo code es operation-id en solicitudes y status-code en respuestas.
@dataclass(frozen=True)
class IPPMessage:
    version_major: int = 2
    version_minor: int = 0
    code: int = 0
    request_id: int = 1
    groups: Tuple[IPPAttributeGroup, ...] = ()
    document_data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "groups", tuple(self.groups))

    @property
    def operation_id(self) -> int:
        return self.code

    @property
    def status_code(self) -> int:
        return self.code

    @property
    def is_success(self) -> bool:
        return is_success(self.code)

    # Grupos con esa etiqueta delimitadora, en orden del mensaje
    def groups_with_tag(self, tag: IPPGroupTag) -> List[IPPAttributeGroup]:
        return [group for group in self.groups if group.tag == tag]

    # Primer atributo con ese nombre, opcionalmente solo en un tipo de grupo
    def find(self, name: str, tag: Optional[IPPGroupTag] = None) -> Optional[IPPAttribute]:
        for group in self.groups:
            if tag is not None and group.tag != tag:
                continue
            attribute = group.get(name)
            if attribute is not None:
                return attribute
        return None

    # status-message y detailed-status-message unidos para diagnóstico
    @property
    def status_message(self) -> Optional[str]:
        parts = []
        for name in ("status-message", "detailed-status-message"):
            attribute = self.find(name, IPPGroupTag.OPERATION_ATTRIBUTES_TAG)
            if attribute is not None:
                parts.extend(str(v.to_python()) for v in attribute.values)
        return "; ".join(parts) if parts else None

# Cursor con control de límites; cada lectura valida los bytes restantes
class _Reader:

    def __init__(self, data: bytes, offset: int = 0):
        self.data = memoryview(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, length: int, what: str) -> bytes:
        if length > self.remaining:
            raise MalformedMessage(
                f"{what}: need {length} bytes at offset {self.offset}, only {self.remaining} left"
            )
        chunk = self.data[self.offset:self.offset + length].tobytes()
        self.offset += length
        return chunk

    def read_u8(self, what: str) -> int:
        return self.read(1, what)[0]

    def read_u16(self, what: str) -> int:
        return struct.unpack(">H", self.read(2, what))[0]

    def rest(self) -> bytes:
        chunk = self.data[self.offset:].tobytes()
        self.offset = len(self.data)
        return chunk

_FIXED_LENGTHS = {
    IPPTag.INTEGER: 4,
    IPPTag.ENUM: 4,
    IPPTag.BOOLEAN: 1,
    IPPTag.DATETIME: 11,
    IPPTag.RESOLUTION: 9,
    IPPTag.RANGE_OF_INTEGER: 8,
}

_ASCII_TYPES = {
    IPPTag.KEYWORD: KeywordValue,
    IPPTag.URI_SCHEME: UriSchemeValue,
    IPPTag.CHARSET: CharsetValue,
    IPPTag.NATURAL_LANGUAGE: NaturalLanguageValue,
    IPPTag.MIME_MEDIA_TYPE: MimeMediaTypeValue,
}

# Codec IPP: codificación de mensajes y decodificación con control de límites
class IPPParser:

    # Codifica encabezado y grupos hasta end-of-attributes inclusive.
    # El documento no forma parte del resultado; ver IPPRequest.iter_chunks.
    @staticmethod
    def encode(message: IPPMessage) -> bytes:
        stream = io.BytesIO()
        try:
            stream.write(struct.pack(
                ">BBHI",
                message.version_major,
                message.version_minor,
                message.code,
                message.request_id,
            ))
        except struct.error as e:
            raise ValueError(f"IPP header field out of range: {e}")

        for group in message.groups:
            stream.write(bytes([group.tag]))
            for attribute in group.attributes:
                IPPParser._write_attribute(stream, attribute.name, attribute.value)

        stream.write(bytes([IPPGroupTag.END_OF_ATTRIBUTES_TAG]))
        logger.debug(
            f"Encoded IPP message: version={message.version_major}.{message.version_minor}, "
            f"code=0x{message.code:04x}, request_id={message.request_id}, bytes={stream.tell()}"
        )
        return stream.getvalue()

    # Codifica el mensaje seguido de su document_data
    @staticmethod
    def encode_with_data(message: IPPMessage) -> bytes:
        return IPPParser.encode(message) + message.document_data

    # Escribe un atributo; los arreglos repiten con nombre vacío, las colecciones anidan
    @staticmethod
    def _write_attribute(stream: io.BytesIO, name: str, value: IPPValue):
        if isinstance(value, ArrayValue):
            for index, item in enumerate(value.values):
                IPPParser._write_attribute(stream, name if index == 0 else "", item)
            return

        if isinstance(value, CollectionValue):
            IPPParser._write_field(stream, IPPTag.BEGIN_COLLECTION, name, b"")
            for member_name, member_value in value.members.items():
                IPPParser._write_field(
                    stream, IPPTag.MEMBER_ATTR_NAME, "", member_name.encode("utf-8")
                )
                IPPParser._write_attribute(stream, "", member_value)
            IPPParser._write_field(stream, IPPTag.END_COLLECTION, "", b"")
            return

        try:
            value_bytes = value.encode()
        except struct.error as e:
            raise ValueError(f"IPP attribute '{name}' value out of range: {e}")
        IPPParser._write_field(stream, wire_tag(value), name, value_bytes)

    # [tag][name-length][name][value-length][value]
    @staticmethod
    def _write_field(stream: io.BytesIO, tag: int, name: str, value_bytes: bytes):
        name_bytes = name.encode("utf-8")
        if len(name_bytes) > 0xFFFF or len(value_bytes) > 0xFFFF:
            raise ValueError(f"IPP attribute '{name}' exceeds the 65535 byte field limit")
        stream.write(bytes([tag]))
        stream.write(struct.pack(">H", len(name_bytes)))
        stream.write(name_bytes)
        stream.write(struct.pack(">H", len(value_bytes)))
        stream.write(value_bytes)

    # Parsea un mensaje IPP completo (solicitud o respuesta)
    @staticmethod
    def parse(data: bytes) -> IPPMessage:
        if len(data) < 8:
            raise MalformedMessage(f"IPP message too short: {len(data)} bytes (header needs 8)")

        version_major, version_minor, code, request_id = struct.unpack(">BBHI", data[:8])
        logger.debug(
            f"Parsing IPP: version={version_major}.{version_minor}, "
            f"code=0x{code:04x}, request_id={request_id}, bytes={len(data)}"
        )

        reader = _Reader(data, 8)
        groups: List[Tuple[IPPGroupTag, List[Tuple[str, List[IPPValue]]]]] = []
        charset = "utf-8"
        document_data = None

        while reader.remaining:
            tag = reader.read_u8("tag")

            if tag == IPPGroupTag.END_OF_ATTRIBUTES_TAG:
                document_data = reader.rest()
                break

            # Etiquetas delimitadoras: 0x00-0x0F
            if tag < 0x10:
                try:
                    group_tag = IPPGroupTag(tag)
                except ValueError:
                    raise MalformedMessage(f"Unknown delimiter tag 0x{tag:02x} at offset {reader.offset - 1}")
                groups.append((group_tag, []))
                logger.debug(f"Group delimiter: {group_tag.name}")
                continue

            if not groups:
                raise MalformedMessage(f"Attribute tag 0x{tag:02x} before any group delimiter")
            attributes = groups[-1][1]

            name = IPPParser._read_name(reader)
            value = IPPParser._read_value(reader, tag, charset)

            if name:
                attributes.append((name, [value]))
            elif attributes:
                attributes[-1][1].append(value)
            else:
                raise MalformedMessage("Additional value without a preceding attribute")

            if (name == "attributes-charset"
                    and groups[-1][0] == IPPGroupTag.OPERATION_ATTRIBUTES_TAG
                    and isinstance(value, CharsetValue)):
                charset = value.text

        if document_data is None:
            raise MalformedMessage("Message ended before end-of-attributes tag")

        message = IPPMessage(
            version_major=version_major,
            version_minor=version_minor,
            code=code,
            request_id=request_id,
            groups=tuple(
                IPPAttributeGroup(group_tag, tuple(
                    IPPAttribute(attr_name, _collapse(values)) for attr_name, values in attrs
                ))
                for group_tag, attrs in groups
            ),
            document_data=document_data,
        )
        logger.debug(
            f"Parsed IPP message: {len(message.groups)} groups, "
            f"{sum(len(g) for g in message.groups)} attributes, document={len(document_data)} bytes"
        )
        return message

    @staticmethod
    def _read_name(reader: _Reader) -> str:
        name_length = reader.read_u16("name-length")
        raw = reader.read(name_length, "name")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedMessage(f"Attribute name is not valid UTF-8: {raw!r}")

    # Lee value-length y valor de una etiqueta cuyo nombre ya se consumió
    @staticmethod
    def _read_value(reader: _Reader, tag: int, charset: str) -> IPPValue:
        value_length = reader.read_u16("value-length")
        value_bytes = reader.read(value_length, "value")
        if tag == IPPTag.BEGIN_COLLECTION:
            return IPPParser._read_collection(reader, charset)
        return IPPParser._decode_value(tag, value_bytes, charset)

    # Miembros de la colección hasta endCollection (RFC 8010 3.1.6)
    @staticmethod
    def _read_collection(reader: _Reader, charset: str) -> CollectionValue:
        members: Dict[str, List[IPPValue]] = {}
        member_name = None

        while True:
            if not reader.remaining:
                raise MalformedMessage("Collection not terminated by endCollection")
            tag = reader.read_u8("collection tag")
            if tag < 0x10:
                raise MalformedMessage(f"Delimiter tag 0x{tag:02x} inside collection")
            reader.read(reader.read_u16("name-length"), "name")

            if tag == IPPTag.END_COLLECTION:
                reader.read(reader.read_u16("value-length"), "value")
                break

            if tag == IPPTag.MEMBER_ATTR_NAME:
                raw = reader.read(reader.read_u16("value-length"), "member name")
                try:
                    member_name = raw.decode("ascii")
                except UnicodeDecodeError:
                    raise MalformedMessage(f"Member name is not ASCII: {raw!r}")
                if member_name in members:
                    raise MalformedMessage(f"Duplicate collection member: {member_name}")
                members[member_name] = []
                continue

            if member_name is None:
                raise MalformedMessage("Collection value without memberAttrName")
            members[member_name].append(IPPParser._read_value(reader, tag, charset))

        empty = [name for name, values in members.items() if not values]
        if empty:
            raise MalformedMessage(f"Collection member without value: {empty[0]}")
        return CollectionValue({name: _collapse(values) for name, values in members.items()})

    # Construye un valor tipado desde los bytes crudos
    @staticmethod
    def _decode_value(tag: int, value_bytes: bytes, charset: str) -> IPPValue:
        try:
            ipp_tag = IPPTag(tag)
        except ValueError:
            raise MalformedMessage(f"Unrecognized value tag 0x{tag:02x}")

        if ipp_tag in (IPPTag.MEMBER_ATTR_NAME, IPPTag.END_COLLECTION):
            raise MalformedMessage(f"{ipp_tag.name} outside of a collection")

        if ipp_tag in OUT_OF_BAND_TAGS:
            return OutOfBandValue(ipp_tag)

        expected = _FIXED_LENGTHS.get(ipp_tag)
        if expected is not None and len(value_bytes) != expected:
            raise MalformedMessage(
                f"{ipp_tag.name} value must be {expected} bytes, got {len(value_bytes)}"
            )

        try:
            if ipp_tag == IPPTag.INTEGER:
                return IntegerValue(struct.unpack(">i", value_bytes)[0])
            if ipp_tag == IPPTag.ENUM:
                return EnumValue(struct.unpack(">i", value_bytes)[0])
            if ipp_tag == IPPTag.BOOLEAN:
                return BooleanValue(value_bytes[0] != 0)
            if ipp_tag == IPPTag.TEXT_WITHOUT_LANGUAGE:
                return TextValue(value_bytes.decode(charset), charset=charset)
            if ipp_tag == IPPTag.NAME_WITHOUT_LANGUAGE:
                return NameValue(value_bytes.decode(charset), charset=charset)
            if ipp_tag in (IPPTag.TEXT_WITH_LANGUAGE, IPPTag.NAME_WITH_LANGUAGE):
                inner = _Reader(value_bytes)
                language = inner.read(inner.read_u16("language-length"), "language").decode("ascii")
                text = inner.read(inner.read_u16("text-length"), "text").decode(charset)
                if inner.remaining:
                    raise MalformedMessage(f"Trailing bytes in {ipp_tag.name} value")
                value_type = TextValue if ipp_tag == IPPTag.TEXT_WITH_LANGUAGE else NameValue
                return value_type(text, language=language, charset=charset)
            if ipp_tag == IPPTag.URI:
                return UriValue(value_bytes.decode("utf-8"))
            if ipp_tag in _ASCII_TYPES:
                return _ASCII_TYPES[ipp_tag](value_bytes.decode("ascii"))
            if ipp_tag == IPPTag.OCTET_STRING:
                return OctetStringValue(value_bytes)
            if ipp_tag == IPPTag.DATETIME:
                fields = struct.unpack(">HBBBBBBcBB", value_bytes)
                return DateTimeValue(
                    *fields[:7], utc_direction=fields[7].decode("ascii"),
                    utc_hours=fields[8], utc_minutes=fields[9],
                )
            if ipp_tag == IPPTag.RESOLUTION:
                return ResolutionValue(*struct.unpack(">iib", value_bytes))
            if ipp_tag == IPPTag.RANGE_OF_INTEGER:
                return RangeOfIntegerValue(*struct.unpack(">ii", value_bytes))
        except (UnicodeDecodeError, LookupError) as e:
            raise MalformedMessage(f"Cannot decode {ipp_tag.name} value: {e}")

        raise MalformedMessage(f"Unsupported value tag {ipp_tag.name}")

# Un valor queda escalar, varios forman un arreglo
def _collapse(values: List[IPPValue]) -> IPPValue:
    return values[0] if len(values) == 1 else ArrayValue(tuple(values))
