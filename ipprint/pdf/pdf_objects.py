"""Grafo de objetos PDF en memoria.

Los valores directos son Python simple: ``dict`` (diccionario), ``list`` (arreglo),
``int``/``float``, ``bool``, ``None`` (null), ``str`` (cadena literal) y
``bytes`` (cadena hex). Nombres, referencias indirectas y streams usan las
clases de abajo. Los IDs se asignan en secuencia desde 1, y el ID 1 es
siempre el catálogo del documento.
"""

from typing import Any, Dict, Iterator, Optional, Tuple
from dataclasses import dataclass, field

@dataclass(frozen=True)
class PdfName:
    """Objeto nombre PDF; se guarda sin la barra inicial."""

    value: str

    def __str__(self) -> str:
        return f"/{self.value}"

@dataclass(frozen=True)
class PdfReference:
    """Referencia indirecta (``12 0 R``)."""

    obj_id: int
    generation: int = 0

@dataclass
class PdfStream:
    """Objeto stream: diccionario más datos crudos.

    El escritor completa ``/Length`` con ``len(data)``; no se aplica
    ningún filtro a los datos.
    """

    dictionary: Dict[str, Any]
    data: bytes

CATALOG_ID = 1

class PdfObjectGraph:

    def __init__(self):
        self._objects: Dict[int, Any] = {}
        self._next_id = 1
        self.info: Optional[PdfReference] = None

    # Reserva el siguiente ID sin cuerpo, para objetos referenciados antes de existir
    def reserve(self) -> PdfReference:
        ref = PdfReference(self._next_id)
        self._objects[ref.obj_id] = None
        self._next_id += 1
        return ref

    def set(self, ref: PdfReference, obj: Any) -> PdfReference:
        if ref.obj_id not in self._objects:
            raise KeyError(f"Object {ref.obj_id} was never reserved")
        self._objects[ref.obj_id] = obj
        return ref

    def add(self, obj: Any) -> PdfReference:
        return self.set(self.reserve(), obj)

    def get(self, ref: PdfReference) -> Any:
        return self._objects.get(ref.obj_id)

    def __contains__(self, ref: PdfReference) -> bool:
        return ref.obj_id in self._objects and self._objects[ref.obj_id] is not None

    def __len__(self) -> int:
        return len(self._objects)

    # Pares (id, objeto) en orden de ID; reservas sin asignar entregan None
    def items(self) -> Iterator[Tuple[int, Any]]:
        for obj_id in sorted(self._objects):
            yield obj_id, self._objects[obj_id]

    @property
    def root(self) -> PdfReference:
        return PdfReference(CATALOG_ID)

# Toda PdfReference alcanzable desde un valor, en profundidad
def iter_references(value: Any) -> Iterator[PdfReference]:
    if isinstance(value, PdfReference):
        yield value
    elif isinstance(value, PdfStream):
        yield from iter_references(value.dictionary)
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_references(item)
