"""Print raster images on network printers over IPP."""

from .ipp import (
    IPPAttribute, IPPAttributeGroup, IPPClient, IPPGroupTag, IPPMessage,
    IPPOperation, IPPParser, IPPRequest, IPPStatusCode, IPPTag,
    MalformedMessage, TransportError, is_success,
)
from .pdf import (
    CenteredFit, FixedFit, GeometryOverflow, GraphIncomplete, ImageEmbedder,
    NativeSizePage, PdfObjectGraph, PdfWriter, RasterImage,
)
from .config.options import JobOptions, SessionConfig
from .converter import ConversionError, load_document
from .session import PrintSession, SessionState, SessionStateError, UnsupportedStatus

__version__ = "0.1.0"
