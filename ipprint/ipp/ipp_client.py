from typing import Optional, Union
from urllib.parse import urlsplit, urlunsplit
import logging

import requests

from .ipp_operations import IPPRequest
from .ipp_parser import IPPMessage, IPPParser, status_name

logger = logging.getLogger(__name__)

IPP_DEFAULT_PORT = 631
IPP_CONTENT_TYPE = "application/ipp"

class TransportError(Exception):
    pass

# ipp://host/ruta -> http://host:631/ruta, ipps:// -> https://
def http_url_for(printer_uri: str) -> str:
    parts = urlsplit(printer_uri)
    scheme = parts.scheme.lower()
    if scheme in ("ipp", "http"):
        http_scheme = "http"
    elif scheme in ("ipps", "https"):
        http_scheme = "https"
    else:
        raise ValueError(f"Unsupported printer URI scheme: {printer_uri}")
    if not parts.hostname:
        raise ValueError(f"Printer URI has no host: {printer_uri}")

    netloc = parts.netloc
    if parts.port is None and scheme in ("ipp", "ipps"):
        netloc = f"{netloc}:{IPP_DEFAULT_PORT}"
    return urlunsplit((http_scheme, netloc, parts.path or "/", parts.query, ""))

# IPP sobre HTTP. Un POST bloqueante por solicitud; sin reintentos, el único timeout
# es el que entrega quien llama.
class IPPClient:

    def __init__(self, printer_uri: str,
                 timeout: Optional[Union[float, tuple]] = None,
                 verify: bool = True,
                 session: Optional[requests.Session] = None):
        self.printer_uri = printer_uri
        self.url = http_url_for(printer_uri)
        self.timeout = timeout
        self.verify = verify
        self.session = session or requests.Session()

    # Envía la solicitud transmitiendo el documento y parsea la respuesta IPP
    def send(self, request: IPPRequest) -> IPPMessage:
        logger.debug(
            f"POST {self.url}: operation=0x{request.operation_id:04x}, request_id={request.request_id}"
        )
        try:
            response = self.session.post(
                self.url,
                data=request.iter_chunks(),
                headers={"Content-Type": IPP_CONTENT_TYPE},
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.url} failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(f"HTTP {response.status_code} from {self.url}: {response.reason}")

        content_type = response.headers.get("Content-Type", "")
        if content_type and not content_type.startswith(IPP_CONTENT_TYPE):
            logger.warning(f"Unexpected response Content-Type: {content_type}")

        message = IPPParser.parse(response.content)
        logger.debug(
            f"IPP response: status={status_name(message.status_code)}, request_id={message.request_id}"
        )
        return message

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
