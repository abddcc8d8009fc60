from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field
import logging

from .document_source import DEFAULT_CHUNK_SIZE, EMPTY_DOCUMENT, DocumentSource, as_document_source
from .ipp_parser import IPPMessage, IPPOperation, IPPParser
from .ipp_values import (
    IPPAttribute, IPPAttributeGroup, IPPGroupTag, ArrayValue, CharsetValue,
    KeywordValue, MimeMediaTypeValue, NameValue, NaturalLanguageValue, UriValue,
    value_from_python,
)

logger = logging.getLogger(__name__)

DEFAULT_VERSION = (2, 0)
DEFAULT_CHARSET = "utf-8"
DEFAULT_LANGUAGE = "en"

AttributeInput = Union[Mapping[str, Any], Iterable[IPPAttribute], None]

# Solicitud lista para el transporte: atributos codificados primero, luego el documento.
# Los atributos se codifican al construirla.
@dataclass(frozen=True)
class IPPRequest:
    message: IPPMessage
    document: DocumentSource = EMPTY_DOCUMENT
    header: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "header", IPPParser.encode(self.message))

    @property
    def operation_id(self) -> int:
        return self.message.code

    @property
    def request_id(self) -> int:
        return self.message.request_id

    def header_bytes(self) -> bytes:
        return self.header

    # Transmite la solicitud sin unir encabezado y documento en un solo buffer
    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        yield self.header_bytes()
        yield from self.document.iter_chunks(chunk_size)

    def to_bytes(self) -> bytes:
        return b"".join(self.iter_chunks())

# Normaliza atributos del llamador (mapa de valores simples o lista de IPPAttribute)
def to_attributes(attributes: AttributeInput) -> List[IPPAttribute]:
    if attributes is None:
        return []
    if isinstance(attributes, Mapping):
        return [IPPAttribute(name, value_from_python(value)) for name, value in attributes.items()]
    return list(attributes)

# Atributos de operación con que empieza toda solicitud, en orden RFC 8011
def base_operation_attributes(printer_uri: str, user_name: Optional[str] = None,
                              charset: str = DEFAULT_CHARSET,
                              language: str = DEFAULT_LANGUAGE) -> List[IPPAttribute]:
    attributes = [
        IPPAttribute("attributes-charset", CharsetValue(charset)),
        IPPAttribute("attributes-natural-language", NaturalLanguageValue(language)),
        IPPAttribute("printer-uri", UriValue(printer_uri)),
    ]
    if user_name:
        attributes.append(IPPAttribute("requesting-user-name", NameValue(user_name, charset=charset)))
    return attributes

# Get-Printer-Attributes: solo grupo de operación, sin documento
def get_printer_attributes(printer_uri: str,
                           user_name: Optional[str] = None,
                           requested_attributes: Optional[Sequence[str]] = None,
                           request_id: int = 1,
                           version: Tuple[int, int] = DEFAULT_VERSION,
                           charset: str = DEFAULT_CHARSET,
                           language: str = DEFAULT_LANGUAGE) -> IPPRequest:
    attributes = base_operation_attributes(printer_uri, user_name, charset, language)
    if requested_attributes:
        keywords = tuple(KeywordValue(name) for name in requested_attributes)
        value = keywords[0] if len(keywords) == 1 else ArrayValue(keywords)
        attributes.append(IPPAttribute("requested-attributes", value))

    message = IPPMessage(
        version_major=version[0],
        version_minor=version[1],
        code=IPPOperation.GET_PRINTER_ATTRIBUTES,
        request_id=request_id,
        groups=(IPPAttributeGroup(IPPGroupTag.OPERATION_ATTRIBUTES_TAG, tuple(attributes)),),
    )
    logger.debug(f"Built Get-Printer-Attributes for {printer_uri} (request_id={request_id})")
    return IPPRequest(message)

# Print-Job: grupo de operación que describe el documento, atributos de plantilla
# (media, media-col, print-color-mode, ...) en grupo de trabajo, documento como cuerpo
def print_job(printer_uri: str,
              document: Union[bytes, DocumentSource],
              user_name: Optional[str] = None,
              job_name: Optional[str] = None,
              document_format: str = "application/pdf",
              job_attributes: AttributeInput = None,
              operation_attributes: AttributeInput = None,
              request_id: int = 1,
              version: Tuple[int, int] = DEFAULT_VERSION,
              charset: str = DEFAULT_CHARSET,
              language: str = DEFAULT_LANGUAGE) -> IPPRequest:
    attributes = base_operation_attributes(printer_uri, user_name, charset, language)
    if job_name:
        attributes.append(IPPAttribute("job-name", NameValue(job_name, charset=charset)))
    attributes.append(IPPAttribute("document-format", MimeMediaTypeValue(document_format)))
    attributes.extend(to_attributes(operation_attributes))

    groups = [IPPAttributeGroup(IPPGroupTag.OPERATION_ATTRIBUTES_TAG, tuple(attributes))]
    extra = to_attributes(job_attributes)
    if extra:
        groups.append(IPPAttributeGroup(IPPGroupTag.JOB_ATTRIBUTES_TAG, tuple(extra)))

    message = IPPMessage(
        version_major=version[0],
        version_minor=version[1],
        code=IPPOperation.PRINT_JOB,
        request_id=request_id,
        groups=tuple(groups),
    )
    logger.debug(
        f"Built Print-Job for {printer_uri}: job-name={job_name!r}, format={document_format}, "
        f"job attributes={[a.name for a in extra]}"
    )
    return IPPRequest(message, as_document_source(document))
