from typing import Optional, Tuple
from dataclasses import dataclass
import logging

from .pdf_objects import PdfName, PdfObjectGraph, PdfStream
from .pdf_writer import format_number, serialize

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0
DEFAULT_DPI = 300.0
# Página de foto 4x6 pulgadas
DEFAULT_PAGE_WIDTH_MM = 101.6
DEFAULT_PAGE_HEIGHT_MM = 152.4
DEFAULT_TITLE = "Image Print Job"
PRODUCER = "ipprint"
IMAGE_RESOURCE = "Im1"
# Holgura por redondeo al comparar huella y página
_FIT_TOLERANCE_MM = 1e-6

class GeometryOverflow(Exception):
    pass

def mm_to_pt(mm: float) -> float:
    return mm / MM_PER_INCH * POINTS_PER_INCH

def pt_to_mm(pt: float) -> float:
    return pt / POINTS_PER_INCH * MM_PER_INCH

def px_to_pt(pixels: int, dpi: float) -> float:
    return pixels / dpi * POINTS_PER_INCH

def px_to_mm(pixels: int, dpi: float) -> float:
    return pixels / dpi * MM_PER_INCH

# Desplazamiento que centra un contenido en un eje de la página
def center_offset(page_size: float, content_size: float) -> float:
    return (page_size - content_size) / 2

# Imagen decodificada: ancho x alto píxeles, RGB de 8 bits intercalado, filas de arriba abajo
@dataclass(frozen=True)
class RasterImage:
    width: int
    height: int
    pixels: bytes

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        expected = self.width * self.height * 3
        if len(self.pixels) != expected:
            raise ValueError(
                f"RGB buffer for {self.width}x{self.height} needs {expected} bytes, got {len(self.pixels)}"
            )

@dataclass(frozen=True)
class ImageTransform:
    translate_x_mm: float = 0.0
    translate_y_mm: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    dpi: float = DEFAULT_DPI

    def __post_init__(self):
        if self.dpi <= 0:
            raise ValueError(f"DPI must be positive, got {self.dpi}")

@dataclass(frozen=True)
class PageGeometry:
    width_mm: float
    height_mm: float
    image: RasterImage
    transform: ImageTransform = ImageTransform()

    @property
    def width_pt(self) -> float:
        return mm_to_pt(self.width_mm)

    @property
    def height_pt(self) -> float:
        return mm_to_pt(self.height_mm)

    # Tamaño de la imagen en la página tras escalar, en puntos
    @property
    def image_size_pt(self) -> Tuple[float, float]:
        t = self.transform
        return (
            px_to_pt(self.image.width, t.dpi) * t.scale_x,
            px_to_pt(self.image.height, t.dpi) * t.scale_y,
        )

    @property
    def footprint_mm(self) -> Tuple[float, float]:
        t = self.transform
        return (
            px_to_mm(self.image.width, t.dpi) * t.scale_x,
            px_to_mm(self.image.height, t.dpi) * t.scale_y,
        )

    # True si la imagen colocada sale de la página
    def overflows(self) -> bool:
        t = self.transform
        fw, fh = self.footprint_mm
        return (
            t.translate_x_mm < -_FIT_TOLERANCE_MM
            or t.translate_y_mm < -_FIT_TOLERANCE_MM
            or t.translate_x_mm + fw > self.width_mm + _FIT_TOLERANCE_MM
            or t.translate_y_mm + fh > self.height_mm + _FIT_TOLERANCE_MM
        )

class PlacementStrategy:
    """Decide tamaño de página y transformación para una imagen."""

    name = ""

    def geometry(self, image: RasterImage) -> PageGeometry:
        raise NotImplementedError

# Página fija, imagen en el origen a escala 1.0; puede desbordar o quedar corta
class FixedFit(PlacementStrategy):
    name = "fixed"

    def __init__(self, width_mm: float = DEFAULT_PAGE_WIDTH_MM,
                 height_mm: float = DEFAULT_PAGE_HEIGHT_MM, dpi: float = DEFAULT_DPI):
        self.width_mm = width_mm
        self.height_mm = height_mm
        self.dpi = dpi

    def geometry(self, image: RasterImage) -> PageGeometry:
        return PageGeometry(self.width_mm, self.height_mm, image, ImageTransform(dpi=self.dpi))

# Página del tamaño físico de la imagen al DPI dado
class NativeSizePage(PlacementStrategy):
    name = "native"

    def __init__(self, dpi: float = DEFAULT_DPI):
        self.dpi = dpi

    def geometry(self, image: RasterImage) -> PageGeometry:
        return PageGeometry(
            px_to_mm(image.width, self.dpi),
            px_to_mm(image.height, self.dpi),
            image,
            ImageTransform(dpi=self.dpi),
        )

# Página fija, imagen escalada uniforme para caber y centrada
class CenteredFit(PlacementStrategy):
    name = "centered"

    def __init__(self, width_mm: float = DEFAULT_PAGE_WIDTH_MM,
                 height_mm: float = DEFAULT_PAGE_HEIGHT_MM, dpi: float = DEFAULT_DPI):
        self.width_mm = width_mm
        self.height_mm = height_mm
        self.dpi = dpi

    def geometry(self, image: RasterImage) -> PageGeometry:
        page_w, page_h = mm_to_pt(self.width_mm), mm_to_pt(self.height_mm)
        image_w, image_h = px_to_pt(image.width, self.dpi), px_to_pt(image.height, self.dpi)
        scale = min(page_w / image_w, page_h / image_h)
        offset_x = center_offset(page_w, image_w * scale)
        offset_y = center_offset(page_h, image_h * scale)
        return PageGeometry(
            self.width_mm,
            self.height_mm,
            image,
            ImageTransform(
                translate_x_mm=pt_to_mm(offset_x),
                translate_y_mm=pt_to_mm(offset_y),
                scale_x=scale,
                scale_y=scale,
                dpi=self.dpi,
            ),
        )

STRATEGIES = {
    FixedFit.name: FixedFit,
    NativeSizePage.name: NativeSizePage,
    CenteredFit.name: CenteredFit,
}

# Estrategia por nombre; la nativa ignora el tamaño de página
def placement_strategy(name: str, width_mm: float = DEFAULT_PAGE_WIDTH_MM,
                       height_mm: float = DEFAULT_PAGE_HEIGHT_MM,
                       dpi: float = DEFAULT_DPI) -> PlacementStrategy:
    try:
        strategy_type = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown placement '{name}', expected one of {sorted(STRATEGIES)}")
    if strategy_type is NativeSizePage:
        return NativeSizePage(dpi=dpi)
    return strategy_type(width_mm=width_mm, height_mm=height_mm, dpi=dpi)

# Content stream que dibuja el XObject de imagen con una transformación cm
def image_content_stream(geometry: PageGeometry, resource: str = IMAGE_RESOURCE) -> bytes:
    width_pt, height_pt = geometry.image_size_pt
    tx = mm_to_pt(geometry.transform.translate_x_mm)
    ty = mm_to_pt(geometry.transform.translate_y_mm)
    matrix = " ".join(format_number(v) for v in (width_pt, 0, 0, height_pt, tx, ty))
    return f"q\n{matrix} cm\n/{resource} Do\nQ\n".encode("ascii")

# Construye catálogo (1), pages (2), página (3), contenido (4), imagen (5), info (6)
def build_page(geometry: PageGeometry, title: Optional[str] = DEFAULT_TITLE) -> PdfObjectGraph:
    image = geometry.image
    graph = PdfObjectGraph()
    catalog = graph.reserve()
    pages = graph.reserve()
    page = graph.reserve()

    contents = graph.add(PdfStream({}, image_content_stream(geometry)))
    xobject = graph.add(PdfStream(
        {
            "Type": PdfName("XObject"),
            "Subtype": PdfName("Image"),
            "Width": image.width,
            "Height": image.height,
            "ColorSpace": PdfName("DeviceRGB"),
            "BitsPerComponent": 8,
            "Interpolate": True,
        },
        image.pixels,
    ))

    graph.set(page, {
        "Type": PdfName("Page"),
        "Parent": pages,
        "MediaBox": [0, 0, geometry.width_pt, geometry.height_pt],
        "Resources": {
            "XObject": {IMAGE_RESOURCE: xobject},
            "ProcSet": [PdfName("PDF"), PdfName("ImageC")],
        },
        "Contents": contents,
    })
    graph.set(pages, {"Type": PdfName("Pages"), "Kids": [page], "Count": 1})
    graph.set(catalog, {"Type": PdfName("Catalog"), "Pages": pages})

    if title is not None:
        graph.info = graph.add({"Title": title, "Producer": PRODUCER})
    return graph

class ImageEmbedder:

    def __init__(self, strategy: Optional[PlacementStrategy] = None,
                 allow_overflow: bool = True, title: Optional[str] = DEFAULT_TITLE):
        self.strategy = strategy or FixedFit()
        self.allow_overflow = allow_overflow
        self.title = title

    # Geometría de la estrategia, con la política de desborde aplicada
    def geometry_for(self, image: RasterImage) -> PageGeometry:
        geometry = self.strategy.geometry(image)
        if geometry.overflows():
            fw, fh = geometry.footprint_mm
            message = (
                f"Image footprint {fw:.1f}x{fh:.1f}mm exceeds page "
                f"{geometry.width_mm:.1f}x{geometry.height_mm:.1f}mm ({self.strategy.name} placement)"
            )
            if not self.allow_overflow:
                raise GeometryOverflow(message)
            logger.warning(message)
        return geometry

    def build_page(self, image: RasterImage) -> PdfObjectGraph:
        geometry = self.geometry_for(image)
        logger.debug(
            f"Embedding {image.width}x{image.height}px image on "
            f"{geometry.width_pt:.2f}x{geometry.height_pt:.2f}pt page"
        )
        return build_page(geometry, title=self.title)

    def to_pdf(self, image: RasterImage) -> bytes:
        return serialize(self.build_page(image))
