from .pdf_objects import PdfName, PdfObjectGraph, PdfReference, PdfStream
from .pdf_writer import GraphIncomplete, PdfWriter, serialize
from .image_embedder import (
    CenteredFit, FixedFit, GeometryOverflow, ImageEmbedder, ImageTransform,
    NativeSizePage, PageGeometry, PlacementStrategy, RasterImage, build_page,
    placement_strategy,
)
