from .ipp_values import (
    IPPGroupTag, IPPTag, IPPValue, IPPAttribute, IPPAttributeGroup,
    ArrayValue, BooleanValue, CharsetValue, CollectionValue, DateTimeValue,
    EnumValue, IntegerValue, KeywordValue, MimeMediaTypeValue, NameValue,
    NaturalLanguageValue, OctetStringValue, OutOfBandValue, RangeOfIntegerValue,
    ResolutionValue, TextValue, UriSchemeValue, UriValue, value_from_python,
)
from .ipp_parser import (
    IPPMessage, IPPOperation, IPPParser, IPPStatusCode, MalformedMessage,
    is_success, status_name,
)
from .ipp_operations import IPPRequest, get_printer_attributes, print_job
from .document_source import BufferSource, DocumentSource, StreamSource
from .ipp_client import IPPClient, TransportError, http_url_for
