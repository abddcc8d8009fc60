import struct

import pytest

from ipprint.ipp.ipp_parser import (
    IPPMessage, IPPOperation, IPPParser, IPPStatusCode, MalformedMessage,
    is_success, status_name,
)
from ipprint.ipp.ipp_values import (
    ArrayValue, BooleanValue, CharsetValue, CollectionValue, DateTimeValue,
    EnumValue, IntegerValue, IPPAttribute, IPPAttributeGroup, IPPGroupTag,
    IPPTag, KeywordValue, MimeMediaTypeValue, NameValue, NaturalLanguageValue,
    OctetStringValue, OutOfBandValue, RangeOfIntegerValue, ResolutionValue,
    TextValue, UriSchemeValue, UriValue, value_from_python, wire_tag,
)

HEADER = struct.pack(">BBHI", 2, 0, IPPOperation.PRINT_JOB, 7)

def _field(tag, name, value):
    name_bytes = name.encode("ascii")
    return bytes([tag]) + struct.pack(">H", len(name_bytes)) + name_bytes + struct.pack(">H", len(value)) + value

def _message(*groups, code=IPPOperation.GET_PRINTER_ATTRIBUTES, request_id=42):
    return IPPMessage(version_major=2, version_minor=0, code=code, request_id=request_id, groups=groups)

def _operation_group(*attributes):
    base = (
        IPPAttribute("attributes-charset", CharsetValue("utf-8")),
        IPPAttribute("attributes-natural-language", NaturalLanguageValue("en")),
    )
    return IPPAttributeGroup(IPPGroupTag.OPERATION_ATTRIBUTES_TAG, base + tuple(attributes))

class TestValues:
    # Cada variante escalar escribe su propia etiqueta
    def test_wire_tags(self):
        assert wire_tag(IntegerValue(1)) == IPPTag.INTEGER
        assert wire_tag(BooleanValue(True)) == IPPTag.BOOLEAN
        assert wire_tag(EnumValue(3)) == IPPTag.ENUM
        assert wire_tag(TextValue("a")) == IPPTag.TEXT_WITHOUT_LANGUAGE
        assert wire_tag(TextValue("a", language="fr")) == IPPTag.TEXT_WITH_LANGUAGE
        assert wire_tag(NameValue("a")) == IPPTag.NAME_WITHOUT_LANGUAGE
        assert wire_tag(NameValue("a", language="fr")) == IPPTag.NAME_WITH_LANGUAGE
        assert wire_tag(KeywordValue("a")) == IPPTag.KEYWORD
        assert wire_tag(UriValue("ipp://h/")) == IPPTag.URI
        assert wire_tag(CharsetValue("utf-8")) == IPPTag.CHARSET
        assert wire_tag(NaturalLanguageValue("en")) == IPPTag.NATURAL_LANGUAGE
        assert wire_tag(MimeMediaTypeValue("application/pdf")) == IPPTag.MIME_MEDIA_TYPE
        assert wire_tag(OutOfBandValue(IPPTag.NO_VALUE)) == IPPTag.NO_VALUE
    # Los arreglos toman la etiqueta de su primer valor
    def test_array_tag(self):
        array = ArrayValue((KeywordValue("a"), KeywordValue("b")))
        assert wire_tag(array) == IPPTag.KEYWORD
        assert len(array) == 2
    # Arreglos vacíos, de un solo valor o anidados se rechazan al construir
    def test_array_construction(self):
        with pytest.raises(ValueError):
            ArrayValue(())
        with pytest.raises(ValueError):
            ArrayValue((KeywordValue("printer-state"),))
        with pytest.raises(ValueError):
            ArrayValue((ArrayValue((IntegerValue(1), IntegerValue(2))), IntegerValue(3)))
    # Enteros fuera del rango de 32 bits con signo se rechazan al construir
    def test_int32_range(self):
        assert IntegerValue(2 ** 31 - 1).encode() == b"\x7f\xff\xff\xff"
        assert EnumValue(-2 ** 31).encode() == b"\x80\x00\x00\x00"
        with pytest.raises(ValueError):
            IntegerValue(2 ** 31)
        with pytest.raises(ValueError):
            EnumValue(-2 ** 31 - 1)
        with pytest.raises(ValueError):
            RangeOfIntegerValue(1, 2 ** 31)
        with pytest.raises(ValueError):
            ResolutionValue(2 ** 32, 300)
        with pytest.raises(ValueError):
            ResolutionValue(300, 300, units=300)
        with pytest.raises(ValueError):
            IntegerValue("2")
    # Solo etiquetas fuera de banda forman valores fuera de banda
    def test_out_of_band_rejects_regular_tag(self):
        with pytest.raises(ValueError):
            OutOfBandValue(IPPTag.INTEGER)
    # Codificaciones de tamaño fijo
    def test_scalar_encodings(self):
        assert IntegerValue(-1).encode() == b"\xff\xff\xff\xff"
        assert BooleanValue(True).encode() == b"\x01"
        assert EnumValue(4).encode() == b"\x00\x00\x00\x04"
        assert ResolutionValue(300, 600).encode() == struct.pack(">iib", 300, 600, 3)
        assert RangeOfIntegerValue(1, 9).encode() == struct.pack(">ii", 1, 9)
        assert len(DateTimeValue(2024, 5, 17, 10, 30, 0).encode()) == 11
    # Texto con idioma es [len][idioma][len][texto]
    def test_text_with_language_encoding(self):
        assert TextValue("hi", language="en").encode() == b"\x00\x02en\x00\x02hi"
    # Datos Python simples se convierten en la variante IPP natural
    def test_value_from_python(self):
        assert value_from_python(True) == BooleanValue(True)
        assert value_from_python(2) == IntegerValue(2)
        assert value_from_python("one-sided") == KeywordValue("one-sided")
        assert value_from_python([3]) == IntegerValue(3)
        assert value_from_python([3, 4]) == ArrayValue((IntegerValue(3), IntegerValue(4)))
        assert value_from_python({"media-type": "photographic"}) == CollectionValue(
            {"media-type": KeywordValue("photographic")}
        )
        with pytest.raises(TypeError):
            value_from_python(1.5)
    # Búsqueda en el grupo por nombre
    def test_group_get(self):
        group = _operation_group(IPPAttribute("printer-uri", UriValue("ipp://h/")))
        assert group.get("printer-uri").value == UriValue("ipp://h/")
        assert group.get("missing") is None
        assert len(group) == 3

class TestStatus:
    # El rango de éxito termina en 0x00FF
    def test_success_boundary(self):
        assert is_success(0x0000)
        assert is_success(0x00FF)
        assert not is_success(0x0100)
        assert not is_success(IPPStatusCode.CLIENT_ERROR_DOCUMENT_FORMAT_NOT_SUPPORTED)
    # Códigos conocidos tienen nombre, los desconocidos hexadecimal
    def test_status_name(self):
        assert status_name(0x040a) == "client-error-document-format-not-supported"
        assert status_name(0x0777) == "0x0777"
    # status-message y detailed-status-message se unen
    def test_status_message(self):
        message = _message(_operation_group(
            IPPAttribute("status-message", TextValue("bad format")),
            IPPAttribute("detailed-status-message", TextValue("expected pdf")),
        ), code=0x040a)
        assert message.status_message == "bad format; expected pdf"
        assert not message.is_success

class TestRoundTrip:
    # Toda variante de valor sobrevive codificar y parsear sin cambios
    def test_all_variants(self):
        message = _message(
            _operation_group(
                IPPAttribute("printer-uri", UriValue("ipp://printer.local/ipp/print")),
                IPPAttribute("requesting-user-name", NameValue("alice")),
                IPPAttribute("job-name", NameValue("Photo", language="en")),
                IPPAttribute("document-format", MimeMediaTypeValue("image/pwg-raster")),
                IPPAttribute("requested-attributes", ArrayValue((
                    KeywordValue("printer-state"), KeywordValue("media-supported"),
                ))),
            ),
            IPPAttributeGroup(IPPGroupTag.PRINTER_ATTRIBUTES_TAG, (
                IPPAttribute("copies-default", IntegerValue(1)),
                IPPAttribute("color-supported", BooleanValue(True)),
                IPPAttribute("printer-state", EnumValue(3)),
                IPPAttribute("printer-info", TextValue("Front desk")),
                IPPAttribute("printer-location", TextValue("Réception", language="fr")),
                IPPAttribute("uri-authentication-supported", KeywordValue("none")),
                IPPAttribute("reference-uri-schemes-supported", UriSchemeValue("http")),
                IPPAttribute("printer-current-time", DateTimeValue(2024, 5, 17, 10, 30, 15, 0, "-", 4, 0)),
                IPPAttribute("printer-resolution-default", ResolutionValue(600, 600)),
                IPPAttribute("copies-supported", RangeOfIntegerValue(1, 99)),
                IPPAttribute("printer-uuid-raw", OctetStringValue(b"\x00\x01\xfe\xff")),
                IPPAttribute("printer-message-from-operator", OutOfBandValue(IPPTag.NO_VALUE)),
                IPPAttribute("printer-resolution-supported", ArrayValue((
                    ResolutionValue(300, 300), ResolutionValue(600, 600), ResolutionValue(1200, 600),
                ))),
            )),
        )
        assert IPPParser.parse(IPPParser.encode(message)) == message
    # Colecciones anidadas y arreglos de colecciones mantienen su estructura
    def test_collections(self):
        media_col = CollectionValue({
            "media-size": CollectionValue({
                "x-dimension": IntegerValue(10160),
                "y-dimension": IntegerValue(15240),
            }),
            "media-type": KeywordValue("photographic"),
            "media-source-properties": CollectionValue({
                "media-source-feed-direction": KeywordValue("short-edge-first"),
            }),
        })
        ready = ArrayValue((
            CollectionValue({"media-key": KeywordValue("a4"), "finishings": ArrayValue((EnumValue(3), EnumValue(4)))}),
            CollectionValue({"media-key": KeywordValue("4x6")}),
        ))
        message = _message(
            _operation_group(),
            IPPAttributeGroup(IPPGroupTag.JOB_ATTRIBUTES_TAG, (
                IPPAttribute("media-col", media_col),
                IPPAttribute("media-col-ready", ready),
            )),
            code=IPPOperation.PRINT_JOB,
        )
        parsed = IPPParser.parse(IPPParser.encode(message))
        assert parsed == message
        job = parsed.groups_with_tag(IPPGroupTag.JOB_ATTRIBUTES_TAG)[0]
        assert job.get("media-col").value["media-size"]["x-dimension"] == IntegerValue(10160)
        assert len(job.get("media-col-ready").values) == 2
    # Los miembros de colección usan memberAttrName con nombre de atributo vacío
    def test_collection_wire_layout(self):
        message = _message(IPPAttributeGroup(IPPGroupTag.JOB_ATTRIBUTES_TAG, (
            IPPAttribute("media-col", CollectionValue({"media-type": KeywordValue("stationery")})),
        )))
        body = IPPParser.encode(message)[8:]
        assert body == (
            bytes([IPPGroupTag.JOB_ATTRIBUTES_TAG])
            + _field(IPPTag.BEGIN_COLLECTION, "media-col", b"")
            + _field(IPPTag.MEMBER_ATTR_NAME, "", b"media-type")
            + _field(IPPTag.KEYWORD, "", b"stationery")
            + _field(IPPTag.END_COLLECTION, "", b"")
            + bytes([IPPGroupTag.END_OF_ATTRIBUTES_TAG])
        )
    # Grupos repetidos del mismo tipo quedan separados y en orden
    def test_repeated_groups(self):
        message = _message(
            _operation_group(),
            IPPAttributeGroup(IPPGroupTag.JOB_ATTRIBUTES_TAG, (IPPAttribute("job-id", IntegerValue(1)),)),
            IPPAttributeGroup(IPPGroupTag.JOB_ATTRIBUTES_TAG, (IPPAttribute("job-id", IntegerValue(2)),)),
            code=IPPStatusCode.SUCCESSFUL_OK,
        )
        parsed = IPPParser.parse(IPPParser.encode(message))
        jobs = parsed.groups_with_tag(IPPGroupTag.JOB_ATTRIBUTES_TAG)
        assert [g.get("job-id").value.value for g in jobs] == [1, 2]
    # Los bytes después de end-of-attributes son el documento
    def test_document_data(self):
        message = _message(_operation_group(), code=IPPOperation.PRINT_JOB)
        data = IPPParser.encode(message) + b"%PDF-1.4 body"
        parsed = IPPParser.parse(data)
        assert parsed.document_data == b"%PDF-1.4 body"
        assert IPPParser.encode_with_data(parsed) == data
    # Un solo valor viaja y vuelve como escalar
    def test_single_value_is_scalar(self):
        message = _message(_operation_group(
            IPPAttribute("requested-attributes", value_from_python(["printer-state"])),
        ))
        parsed = IPPParser.parse(IPPParser.encode(message))
        assert parsed == message
        assert parsed.find("requested-attributes").value == KeywordValue("printer-state")
    # El texto se decodifica con el charset que anuncia el mensaje
    def test_declared_charset(self):
        data = (
            HEADER + bytes([IPPGroupTag.OPERATION_ATTRIBUTES_TAG])
            + _field(IPPTag.CHARSET, "attributes-charset", b"iso-8859-1")
            + _field(IPPTag.TEXT_WITHOUT_LANGUAGE, "status-message", "Café".encode("latin-1"))
            + bytes([IPPGroupTag.END_OF_ATTRIBUTES_TAG])
        )
        parsed = IPPParser.parse(data)
        assert parsed.find("status-message").value.text == "Café"

class TestMalformed:
    # Cualquier corte antes del último byte se rechaza
    def test_truncation(self):
        message = _message(_operation_group(
            IPPAttribute("printer-uri", UriValue("ipp://h/p")),
            IPPAttribute("media-col", CollectionValue({"media-type": KeywordValue("plain")})),
        ))
        data = IPPParser.encode(message)
        for cut in range(len(data)):
            with pytest.raises(MalformedMessage):
                IPPParser.parse(data[:cut])
    # Encabezado de menos de 8 bytes
    def test_short_header(self):
        with pytest.raises(MalformedMessage):
            IPPParser.parse(b"\x02\x00\x00")
    # Etiqueta de valor no definida por el protocolo
    def test_unknown_value_tag(self):
        data = HEADER + b"\x01" + _field(0x20, "x", b"") + b"\x03"
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Etiqueta delimitadora fuera del conjunto conocido
    def test_unknown_delimiter(self):
        with pytest.raises(MalformedMessage):
            IPPParser.parse(HEADER + b"\x0f\x03")
    # Falta end-of-attributes
    def test_missing_end_tag(self):
        data = HEADER + b"\x01" + _field(IPPTag.KEYWORD, "sides", b"one-sided")
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Atributo sin delimitador de grupo antes
    def test_attribute_before_group(self):
        data = HEADER + _field(IPPTag.KEYWORD, "sides", b"one-sided") + b"\x03"
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Nombre vacío como primer atributo de un grupo
    def test_additional_value_without_attribute(self):
        data = HEADER + b"\x01" + _field(IPPTag.INTEGER, "", b"\x00\x00\x00\x01") + b"\x03"
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Valores de tamaño fijo con largo incorrecto
    def test_wrong_integer_length(self):
        data = HEADER + b"\x01" + _field(IPPTag.INTEGER, "copies", b"\x00\x01") + b"\x03"
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Largo de valor que apunta más allá del final del buffer
    def test_value_length_overrun(self):
        data = HEADER + b"\x01" + bytes([IPPTag.KEYWORD]) + b"\x00\x01a\x00\x40abc\x03"
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Colección sin endCollection
    def test_unterminated_collection(self):
        data = (
            HEADER + b"\x02"
            + _field(IPPTag.BEGIN_COLLECTION, "media-col", b"")
            + _field(IPPTag.MEMBER_ATTR_NAME, "", b"media-type")
            + _field(IPPTag.KEYWORD, "", b"plain")
            + b"\x03"
        )
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Nombre de miembro sin valor antes de endCollection
    def test_collection_member_without_value(self):
        data = (
            HEADER + b"\x02"
            + _field(IPPTag.BEGIN_COLLECTION, "media-col", b"")
            + _field(IPPTag.MEMBER_ATTR_NAME, "", b"media-type")
            + _field(IPPTag.END_COLLECTION, "", b"")
            + b"\x03"
        )
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Nombre de miembro repetido dentro de una colección
    def test_duplicate_collection_member(self):
        data = (
            HEADER + b"\x02"
            + _field(IPPTag.BEGIN_COLLECTION, "media-col", b"")
            + _field(IPPTag.MEMBER_ATTR_NAME, "", b"media-type")
            + _field(IPPTag.KEYWORD, "", b"plain")
            + _field(IPPTag.MEMBER_ATTR_NAME, "", b"media-type")
            + _field(IPPTag.KEYWORD, "", b"glossy")
            + _field(IPPTag.END_COLLECTION, "", b"")
            + b"\x03"
        )
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)
    # Texto inválido en el charset declarado
    def test_invalid_utf8_text(self):
        data = HEADER + b"\x01" + _field(IPPTag.TEXT_WITHOUT_LANGUAGE, "status-message", b"\xff\xfe") + b"\x03"
        with pytest.raises(MalformedMessage):
            IPPParser.parse(data)

class TestEncodeLimits:
    # Valores de más de 65535 bytes no caben en el campo
    def test_oversized_value(self):
        message = _message(_operation_group(IPPAttribute("blob", OctetStringValue(b"x" * 0x10000))))
        with pytest.raises(ValueError):
            IPPParser.encode(message)
    # request-id debe caber en 32 bits
    def test_request_id_range(self):
        with pytest.raises(ValueError):
            IPPParser.encode(_message(_operation_group(), request_id=2 ** 32))
    # Campos que no caben en su formato binario fallan como ValueError
    def test_unpackable_value(self):
        message = _message(_operation_group(IPPAttribute("printer-current-time", DateTimeValue(70000, 1, 1, 0, 0, 0))))
        with pytest.raises(ValueError):
            IPPParser.encode(message)
