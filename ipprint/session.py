from typing import Optional, Sequence, Union
from enum import Enum
import logging
import os
import tempfile

from .config.options import JobOptions, SessionConfig
from .ipp import ipp_operations
from .ipp.document_source import BufferSource, DocumentSource
from .ipp.ipp_client import IPPClient
from .ipp.ipp_operations import IPPRequest
from .ipp.ipp_parser import IPPMessage, status_name
from .pdf.image_embedder import ImageEmbedder, RasterImage

logger = logging.getLogger(__name__)

class UnsupportedStatus(Exception):

    def __init__(self, status_code: int, status_message: Optional[str] = None,
                 response: Optional[IPPMessage] = None, operation: str = ""):
        self.status_code = status_code
        self.status_message = status_message
        self.response = response
        self.operation = operation
        detail = f": {status_message}" if status_message else ""
        super().__init__(f"{operation or 'IPP request'} failed with {status_name(status_code)}{detail}")

class SessionStateError(RuntimeError):
    pass

class SessionState(Enum):
    IDLE = "idle"
    ATTRIBUTES_QUERIED = "attributes-queried"
    JOB_BUILT = "job-built"
    SENT = "sent"
    RESPONSE_RECEIVED = "response-received"
    FAILED = "failed"

# Un intercambio de impresión con una impresora:
#   IDLE -> [ATTRIBUTES_QUERIED] -> JOB_BUILT -> SENT -> RESPONSE_RECEIVED
# Cualquier error deja la sesión en FAILED. No hay reintentos.
class PrintSession:

    def __init__(self, config: SessionConfig,
                 client: Optional[IPPClient] = None,
                 embedder: Optional[ImageEmbedder] = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or IPPClient(
            config.printer_uri, timeout=config.timeout, verify=config.verify_tls
        )
        self.embedder = embedder or ImageEmbedder(
            config.strategy(), allow_overflow=config.allow_overflow
        )
        self.state = SessionState.IDLE
        self.printer_attributes: Optional[IPPMessage] = None
        self.request: Optional[IPPRequest] = None
        self.response: Optional[IPPMessage] = None
        self.pdf_data: Optional[bytes] = None
        self._next_request_id = config.first_request_id
        self._temp_path: Optional[str] = None

    def _require(self, *states: SessionState):
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise SessionStateError(f"Session is {self.state.value}, expected {expected}")

    def _take_request_id(self) -> int:
        request_id = self._next_request_id
        self._next_request_id += 1
        return request_id

    # Consulta las capacidades de la impresora (paso opcional)
    def query_attributes(self, requested_attributes: Optional[Sequence[str]] = None) -> IPPMessage:
        self._require(SessionState.IDLE)
        try:
            request = ipp_operations.get_printer_attributes(
                self.config.printer_uri,
                user_name=self.config.user_name,
                requested_attributes=requested_attributes,
                request_id=self._take_request_id(),
                version=self.config.version,
                charset=self.config.charset,
                language=self.config.language,
            )
            logger.info(f"Querying printer attributes: {self.config.printer_uri}")
            response = self.client.send(request)
            if not response.is_success:
                raise UnsupportedStatus(
                    response.status_code, response.status_message, response, "Get-Printer-Attributes"
                )
        except Exception as e:
            self.state = SessionState.FAILED
            logger.error(f"Get-Printer-Attributes failed: {e}")
            raise

        self.printer_attributes = response
        self.state = SessionState.ATTRIBUTES_QUERIED
        return response

    # Construye el Print-Job desde una imagen (embebida como PDF) o bytes PDF listos
    def build_job(self, document: Union[RasterImage, bytes], options: Optional[JobOptions] = None) -> IPPRequest:
        self._require(SessionState.IDLE, SessionState.ATTRIBUTES_QUERIED)
        options = options or JobOptions()
        try:
            if isinstance(document, RasterImage):
                logger.info(f"Converting {document.width}x{document.height} image to PDF")
                self.pdf_data = self.embedder.to_pdf(document)
            else:
                self.pdf_data = bytes(document)
            logger.info(f"Document ready: {len(self.pdf_data)} bytes, format={options.document_format}")

            source = self._document_source(self.pdf_data)
            try:
                self.request = ipp_operations.print_job(
                    self.config.printer_uri,
                    source,
                    user_name=self.config.user_name,
                    job_name=options.job_name,
                    document_format=options.document_format,
                    job_attributes=options.job_attributes(),
                    request_id=self._take_request_id(),
                    version=self.config.version,
                    charset=self.config.charset,
                    language=self.config.language,
                )
            except Exception:
                source.close()
                raise
        except Exception as e:
            self.state = SessionState.FAILED
            logger.error(f"Building print job failed: {e}")
            raise

        self.state = SessionState.JOB_BUILT
        return self.request

    # Buffer en memoria o archivo temporal; los mismos bytes en el cable
    def _document_source(self, pdf_data: bytes) -> DocumentSource:
        if not self.config.use_file:
            return BufferSource(pdf_data)
        fd, path = tempfile.mkstemp(prefix="ipprint-", suffix=".pdf")
        with os.fdopen(fd, "wb") as f:
            f.write(pdf_data)
        self._temp_path = path
        logger.debug(f"PDF written to temporary file {path}")
        return DocumentSource.from_file(path)

    # Envía el trabajo construido e interpreta el estado de la respuesta
    def send(self) -> IPPMessage:
        self._require(SessionState.JOB_BUILT)
        self.state = SessionState.SENT
        try:
            logger.info(f"Sending Print-Job to {self.config.printer_uri}")
            response = self.client.send(self.request)
            self.response = response
            self.state = SessionState.RESPONSE_RECEIVED
            if not response.is_success:
                raise UnsupportedStatus(response.status_code, response.status_message, response, "Print-Job")
        except Exception as e:
            self.state = SessionState.FAILED
            logger.error(f"Print-Job failed: {e}")
            raise
        finally:
            self._remove_temp_file()

        logger.info(f"Print-Job accepted: status={status_name(response.status_code)}")
        return response

    # Flujo completo en una llamada
    def print_document(self, document: Union[RasterImage, bytes],
                       options: Optional[JobOptions] = None, query: bool = True) -> IPPMessage:
        if query:
            self.query_attributes()
        self.build_job(document, options)
        return self.send()

    def _remove_temp_file(self):
        if self._temp_path is None:
            return
        if self.request is not None:
            self.request.document.close()
        if os.path.exists(self._temp_path):
            os.remove(self._temp_path)
            logger.debug(f"Removed temporary file {self._temp_path}")
        self._temp_path = None

    def close(self):
        if self.request is not None:
            self.request.document.close()
        self._remove_temp_file()
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
