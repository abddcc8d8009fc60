from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from ..ipp.ipp_values import (
    CollectionValue, EnumValue, IntegerValue, IPPAttribute, KeywordValue,
    value_from_python,
)
from ..pdf.image_embedder import PlacementStrategy, placement_strategy

COLOR_MODES = {"auto", "bi-level", "color", "highlight", "monochrome", "process-bi-level", "process-monochrome"}

# Parámetros de conexión y diagramación por sesión
class SessionConfig(BaseModel):
    printer_uri: str
    user_name: str = "noname"
    timeout: Optional[float] = None
    verify_tls: bool = True
    version: Tuple[int, int] = (2, 0)
    charset: str = "utf-8"
    language: str = "en"
    first_request_id: int = Field(default=1, ge=1, le=0x7FFFFFFF)

    placement: str = "fixed"
    page_width_mm: float = Field(default=101.6, gt=0)
    page_height_mm: float = Field(default=152.4, gt=0)
    dpi: float = Field(default=300.0, gt=0)
    allow_overflow: bool = True
    use_file: bool = False

    @field_validator("printer_uri")
    @classmethod
    def check_scheme(cls, value: str) -> str:
        if not value.lower().startswith(("ipp://", "ipps://", "http://", "https://")):
            raise ValueError("printer URI must use ipp://, ipps://, http:// or https://")
        return value

    @field_validator("placement")
    @classmethod
    def check_placement(cls, value: str) -> str:
        if value not in ("fixed", "native", "centered"):
            raise ValueError("placement must be fixed, native or centered")
        return value

    def strategy(self) -> PlacementStrategy:
        return placement_strategy(self.placement, self.page_width_mm, self.page_height_mm, self.dpi)

    @classmethod
    def from_settings(cls, settings, **overrides) -> "SessionConfig":
        values = dict(
            printer_uri=settings.PRINTER_URI,
            user_name=settings.IPP_USER,
            timeout=settings.IPP_TIMEOUT,
            verify_tls=settings.IPP_VERIFY_TLS,
            version=settings.ipp_version(),
            charset=settings.IPP_CHARSET,
            language=settings.IPP_NATURAL_LANGUAGE,
            placement=settings.PLACEMENT,
            page_width_mm=settings.PAGE_WIDTH_MM,
            page_height_mm=settings.PAGE_HEIGHT_MM,
            dpi=settings.IMAGE_DPI,
            allow_overflow=settings.ALLOW_OVERFLOW,
            use_file=settings.USE_TEMP_FILE,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

# Atributos de plantilla del trabajo enviados con Print-Job
class JobOptions(BaseModel):
    job_name: Optional[str] = None
    document_format: str = "application/pdf"
    media: Optional[str] = "w288h432"
    media_size_mm: Optional[Tuple[float, float]] = None
    print_color_mode: Optional[str] = "color"
    print_quality: Optional[int] = 4
    print_scaling: Optional[str] = "auto"
    # Atributos clave=valor adicionales, se envían tal cual
    passthrough: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("print_color_mode")
    @classmethod
    def check_color_mode(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in COLOR_MODES:
            raise ValueError(f"print-color-mode must be one of {sorted(COLOR_MODES)}")
        return value

    @field_validator("print_quality")
    @classmethod
    def check_quality(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value not in (3, 4, 5):
            raise ValueError("print-quality must be 3 (draft), 4 (normal) or 5 (high)")
        return value

    @field_validator("passthrough")
    @classmethod
    def check_passthrough(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        for name, item in value.items():
            try:
                value_from_python(item)
            except (TypeError, ValueError) as e:
                raise ValueError(f"attribute {name}: {e}")
        return value

    @field_validator("media_size_mm")
    @classmethod
    def check_media_size(cls, value):
        if value is not None and (value[0] <= 0 or value[1] <= 0):
            raise ValueError("media size must be positive")
        return value

    # media-col/media-size en centésimas de milímetro
    def media_col(self) -> Optional[CollectionValue]:
        if self.media_size_mm is None:
            return None
        width_mm, height_mm = self.media_size_mm
        return CollectionValue({
            "media-size": CollectionValue({
                "x-dimension": IntegerValue(int(round(width_mm * 100))),
                "y-dimension": IntegerValue(int(round(height_mm * 100))),
            })
        })

    # Atributos en orden de envío; los adicionales reemplazan defaults del mismo nombre
    def job_attributes(self) -> List[IPPAttribute]:
        values: Dict[str, Any] = {}
        if self.media:
            values["media"] = KeywordValue(self.media)
        media_col = self.media_col()
        if media_col is not None:
            values["media-col"] = media_col
        if self.print_scaling:
            values["print-scaling"] = KeywordValue(self.print_scaling)
        if self.print_color_mode:
            values["print-color-mode"] = KeywordValue(self.print_color_mode)
        if self.print_quality is not None:
            values["print-quality"] = EnumValue(self.print_quality)
        for name, value in self.passthrough.items():
            values[name] = value_from_python(value)
        return [IPPAttribute(name, value) for name, value in values.items()]

    @classmethod
    def from_settings(cls, settings, **overrides) -> "JobOptions":
        values = dict(
            media=settings.DEFAULT_MEDIA,
            media_size_mm=(settings.PAGE_WIDTH_MM, settings.PAGE_HEIGHT_MM) if settings.INCLUDE_MEDIA_COL else None,
            print_color_mode=settings.PRINT_COLOR_MODE,
            print_quality=settings.PRINT_QUALITY,
            print_scaling=settings.PRINT_SCALING,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
