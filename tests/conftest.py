import pytest

from ipprint.ipp.ipp_parser import IPPMessage, IPPParser
from ipprint.ipp.ipp_values import (
    CharsetValue, IPPAttribute, IPPAttributeGroup, IPPGroupTag,
    IntegerValue, KeywordValue, NaturalLanguageValue, TextValue, UriValue,
)
from ipprint.pdf.image_embedder import RasterImage

PRINTER_URI = "ipp://printer.local/ipp/print"

@pytest.fixture
def printer_uri():
    return PRINTER_URI

# Imagen 2x2: rojo, verde / azul, blanco
@pytest.fixture
def raster():
    pixels = bytes([
        255, 0, 0, 0, 255, 0,
        0, 0, 255, 255, 255, 255,
    ])
    return RasterImage(width=2, height=2, pixels=pixels)

# Construye respuestas como las arma una impresora real
@pytest.fixture
def make_response():
    def factory(status_code=0x0000, request_id=1, status_message=None, job_id=None):
        operation = [
            IPPAttribute("attributes-charset", CharsetValue("utf-8")),
            IPPAttribute("attributes-natural-language", NaturalLanguageValue("en")),
        ]
        if status_message:
            operation.append(IPPAttribute("status-message", TextValue(status_message)))
        groups = [IPPAttributeGroup(IPPGroupTag.OPERATION_ATTRIBUTES_TAG, tuple(operation))]
        if job_id is not None:
            groups.append(IPPAttributeGroup(IPPGroupTag.JOB_ATTRIBUTES_TAG, (
                IPPAttribute("job-id", IntegerValue(job_id)),
                IPPAttribute("job-uri", UriValue(f"{PRINTER_URI}/job/{job_id}")),
                IPPAttribute("job-state-reasons", KeywordValue("none")),
            )))
        return IPPMessage(code=status_code, request_id=request_id, groups=tuple(groups))
    return factory

# Bytes de respuesta tal como llegan en el cuerpo HTTP
@pytest.fixture
def response_bytes(make_response):
    def factory(**kwargs):
        return IPPParser.encode(make_response(**kwargs))
    return factory
