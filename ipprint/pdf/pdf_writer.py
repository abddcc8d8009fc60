"""Serialización PDF de un :class:`PdfObjectGraph`."""

from typing import Any, Dict, List
import io
import logging

from .pdf_objects import CATALOG_ID, PdfName, PdfObjectGraph, PdfReference, PdfStream, iter_references

logger = logging.getLogger(__name__)

PDF_VERSION = "1.4"
# Comentario binario para que los transportes traten el archivo como binario
BINARY_MARKER = b"%\xe2\xe3\xcf\xd3\n"

class GraphIncomplete(Exception):
    pass

# Caracteres que se escapan con # dentro de un nombre
_NAME_DELIMITERS = set(b"()<>[]{}/%#")

def _escape_name(value: str) -> bytes:
    out = bytearray()
    for byte in value.encode("utf-8"):
        if byte < 0x21 or byte > 0x7e or byte in _NAME_DELIMITERS:
            out.extend(f"#{byte:02X}".encode("ascii"))
        else:
            out.append(byte)
    return bytes(out)

def _escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("(", "\\(")
        .replace(")", "\\)")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
    )

def format_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    text = ("%.6f" % value).rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text

def serialize_value(value: Any) -> bytes:
    if isinstance(value, PdfName):
        return b"/" + _escape_name(value.value)
    if isinstance(value, PdfReference):
        return f"{value.obj_id} {value.generation} R".encode("ascii")
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if value is None:
        return b"null"
    if isinstance(value, (int, float)):
        return format_number(value).encode("ascii")
    if isinstance(value, str):
        try:
            return f"({_escape_text(value)})".encode("latin-1")
        except UnicodeEncodeError:
            # Texto fuera de Latin-1 sale como UTF-16BE con BOM
            return b"<feff" + value.encode("utf-16-be").hex().encode("ascii") + b">"
    if isinstance(value, bytes):
        return b"<" + value.hex().encode("ascii") + b">"
    if isinstance(value, dict):
        parts = [b"<<"]
        for key, item in value.items():
            name = key.value if isinstance(key, PdfName) else key
            parts.append(b" /" + _escape_name(name) + b" " + serialize_value(item))
        parts.append(b" >>")
        return b"".join(parts)
    if isinstance(value, (list, tuple)):
        return b"[" + b" ".join(serialize_value(item) for item in value) + b"]"
    raise TypeError(f"Unsupported PDF value type: {type(value)!r}")

# Chequeos estructurales de los que depende la serialización
def validate_graph(graph: PdfObjectGraph):
    objects = dict(graph.items())
    if not objects:
        raise GraphIncomplete("Graph has no objects")

    unset = [obj_id for obj_id, obj in objects.items() if obj is None]
    if unset:
        raise GraphIncomplete(f"Objects reserved but never set: {unset}")

    catalog = objects.get(CATALOG_ID)
    if not isinstance(catalog, dict) or catalog.get("Type") != PdfName("Catalog"):
        raise GraphIncomplete(f"Object {CATALOG_ID} must be the /Catalog dictionary")

    for obj_id, obj in objects.items():
        for ref in iter_references(obj):
            if ref.obj_id not in objects:
                raise GraphIncomplete(f"Object {obj_id} references missing object {ref.obj_id}")

    if graph.info is not None and graph.info.obj_id not in objects:
        raise GraphIncomplete(f"Info dictionary {graph.info.obj_id} is not in the graph")

# Escribe encabezado, objetos en orden de ID, tabla xref y trailer en una pasada;
# cada offset es la posición del buffer justo antes del objeto
def serialize(graph: PdfObjectGraph) -> bytes:
    validate_graph(graph)

    buffer = io.BytesIO()
    buffer.write(f"%PDF-{PDF_VERSION}\n".encode("ascii"))
    buffer.write(BINARY_MARKER)

    offsets: List[int] = []
    for obj_id, obj in graph.items():
        offsets.append(buffer.tell())
        buffer.write(f"{obj_id} 0 obj\n".encode("ascii"))
        if isinstance(obj, PdfStream):
            dictionary: Dict[str, Any] = dict(obj.dictionary)
            dictionary["Length"] = len(obj.data)
            buffer.write(serialize_value(dictionary))
            buffer.write(b"\nstream\n")
            buffer.write(obj.data)
            buffer.write(b"\nendstream")
        else:
            buffer.write(serialize_value(obj))
        buffer.write(b"\nendobj\n")

    xref_offset = buffer.tell()
    count = len(offsets) + 1
    buffer.write(f"xref\n0 {count}\n".encode("ascii"))
    # Entradas de 20 bytes: offset de 10 dígitos, generación de 5, tipo, fin de línea de 2 bytes
    buffer.write(b"0000000000 65535 f \n")
    for offset in offsets:
        buffer.write(f"{offset:010d} 00000 n \n".encode("ascii"))

    trailer = {"Size": count, "Root": graph.root}
    if graph.info is not None:
        trailer["Info"] = graph.info
    buffer.write(b"trailer\n")
    buffer.write(serialize_value(trailer))
    buffer.write(f"\nstartxref\n{xref_offset}\n%%EOF\n".encode("ascii"))

    result = buffer.getvalue()
    logger.debug(f"Serialized PDF: {len(offsets)} objects, {len(result)} bytes, xref at {xref_offset}")
    return result

class PdfWriter:

    def __init__(self, graph: PdfObjectGraph):
        self.graph = graph

    def to_bytes(self) -> bytes:
        return serialize(self.graph)

    def write(self, stream: io.IOBase) -> int:
        data = self.to_bytes()
        stream.write(data)
        return len(data)
