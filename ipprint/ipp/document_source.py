from typing import BinaryIO, Iterator, Optional, Union
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

class DocumentSource:
    """Bytes del documento que siguen a los atributos IPP de una solicitud.

    Una fuente es un buffer en memoria o un stream legible. Ambos entregan los
    mismos bytes con ``iter_chunks``, el transporte no necesita saber
    cuál recibió.
    """

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        raise NotImplementedError

    def read_all(self) -> bytes:
        return b"".join(self.iter_chunks())

    def close(self):
        pass

    @staticmethod
    def from_bytes(data: bytes) -> "BufferSource":
        return BufferSource(data)

    # Abre un archivo para transmitirlo; se cierra al terminar de leerlo
    @staticmethod
    def from_file(path: Union[str, Path]) -> "StreamSource":
        logger.debug(f"Streaming document from file: {path}")
        return StreamSource(open(path, "rb"), close_when_done=True)

class BufferSource(DocumentSource):

    def __init__(self, data: bytes):
        self.data = data

    def __len__(self):
        return len(self.data)

    # Recorta con memoryview, el buffer nunca se copia completo
    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        view = memoryview(self.data)
        for start in range(0, len(view), chunk_size):
            yield view[start:start + chunk_size].tobytes()

    def read_all(self) -> bytes:
        return bytes(self.data)

class StreamSource(DocumentSource):

    def __init__(self, stream: BinaryIO, close_when_done: bool = False):
        self.stream = stream
        self.close_when_done = close_when_done
        self._consumed = False

    # Un stream solo se puede enviar una vez
    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        if self._consumed:
            raise RuntimeError("Document stream was already consumed")
        self._consumed = True
        try:
            while True:
                chunk = self.stream.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            if self.close_when_done:
                self.close()

    def close(self):
        self.stream.close()

EMPTY_DOCUMENT = BufferSource(b"")

def as_document_source(document: Optional[Union[bytes, bytearray, BinaryIO, DocumentSource]]) -> DocumentSource:
    if document is None:
        return EMPTY_DOCUMENT
    if isinstance(document, DocumentSource):
        return document
    if isinstance(document, (bytes, bytearray, memoryview)):
        return BufferSource(bytes(document))
    if hasattr(document, "read"):
        return StreamSource(document)
    raise TypeError(f"Unsupported document type: {type(document).__name__}")
