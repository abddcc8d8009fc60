import pytest
from pydantic import ValidationError

from ipprint.config.options import JobOptions, SessionConfig
from ipprint.config.settings import PrintSettings, settings
from ipprint.ipp.ipp_values import CollectionValue, EnumValue, IntegerValue, KeywordValue
from ipprint.pdf.image_embedder import CenteredFit, FixedFit

class TestSettings:
    # La versión IPP se separa en los bytes del encabezado
    def test_ipp_version(self):
        assert settings.ipp_version() == (2, 0)
    # Los valores por defecto pasan la validación
    def test_defaults_valid(self, monkeypatch):
        monkeypatch.setattr(PrintSettings, "PRINTER_URI", "ipp://printer.local/ipp/print")
        monkeypatch.setattr(PrintSettings, "PLACEMENT", "fixed")
        monkeypatch.setattr(PrintSettings, "PRINT_QUALITY", 4)
        monkeypatch.setattr(PrintSettings, "PAGE_WIDTH_MM", 101.6)
        monkeypatch.setattr(PrintSettings, "PAGE_HEIGHT_MM", 152.4)
        monkeypatch.setattr(PrintSettings, "IMAGE_DPI", 300.0)
        monkeypatch.setattr(PrintSettings, "IPP_TIMEOUT", None)
        assert settings.validate_config() == []
    # Todos los valores inválidos se reportan
    def test_invalid_values(self, monkeypatch):
        monkeypatch.setattr(PrintSettings, "PRINTER_URI", "lpd://printer")
        monkeypatch.setattr(PrintSettings, "PLACEMENT", "stretch")
        monkeypatch.setattr(PrintSettings, "PRINT_QUALITY", 7)
        monkeypatch.setattr(PrintSettings, "IMAGE_DPI", 0)
        errors = settings.validate_config()
        assert any("PRINTER_URI" in e for e in errors)
        assert any("PLACEMENT" in e for e in errors)
        assert any("PRINT_QUALITY" in e for e in errors)
        assert any("IMAGE_DPI" in e for e in errors)

class TestSessionConfig:
    # Se validan esquema y ubicación
    def test_validation(self):
        with pytest.raises(ValidationError):
            SessionConfig(printer_uri="lpd://printer/queue")
        with pytest.raises(ValidationError):
            SessionConfig(printer_uri="ipp://printer/ipp", placement="stretch")
        with pytest.raises(ValidationError):
            SessionConfig(printer_uri="ipp://printer/ipp", dpi=0)
    # Estrategia construida desde los campos de diagramación
    def test_strategy(self):
        config = SessionConfig(printer_uri="ipp://printer/ipp", placement="centered", page_width_mm=210, page_height_mm=297)
        strategy = config.strategy()
        assert isinstance(strategy, CenteredFit)
        assert (strategy.width_mm, strategy.height_mm) == (210, 297)
    # Overrides en None mantienen el valor de settings
    def test_from_settings(self):
        config = SessionConfig.from_settings(settings, printer_uri="ipps://printer/ipp", dpi=None, placement="fixed")
        assert config.printer_uri == "ipps://printer/ipp"
        assert config.dpi == settings.IMAGE_DPI
        assert config.version == settings.ipp_version()
        assert isinstance(config.strategy(), FixedFit)

class TestJobOptions:
    # media-col lleva el tamaño de página en centésimas de milímetro
    def test_media_col(self):
        media_col = JobOptions(media_size_mm=(101.6, 152.4)).media_col()
        assert media_col == CollectionValue({
            "media-size": CollectionValue({
                "x-dimension": IntegerValue(10160),
                "y-dimension": IntegerValue(15240),
            })
        })
        assert JobOptions().media_col() is None
    # Atributos por defecto en orden de envío
    def test_job_attributes(self):
        attributes = JobOptions(media_size_mm=(101.6, 152.4)).job_attributes()
        assert [a.name for a in attributes] == [
            "media", "media-col", "print-scaling", "print-color-mode", "print-quality",
        ]
        values = {a.name: a.value for a in attributes}
        assert values["media"] == KeywordValue("w288h432")
        assert values["print-scaling"] == KeywordValue("auto")
        assert values["print-color-mode"] == KeywordValue("color")
        assert values["print-quality"] == EnumValue(4)
    # Opciones sin valor se omiten
    def test_omitted_attributes(self):
        options = JobOptions(media=None, print_scaling=None, print_color_mode=None, print_quality=None)
        assert options.job_attributes() == []
    # Atributos adicionales reemplazan defaults y agregan nuevos
    def test_passthrough(self):
        options = JobOptions(passthrough={"media": "iso_a4_210x297mm", "copies": 2})
        values = {a.name: a.value for a in options.job_attributes()}
        assert values["media"] == KeywordValue("iso_a4_210x297mm")
        assert values["copies"] == IntegerValue(2)
        assert [a.name for a in options.job_attributes()][-1] == "copies"
    # Se validan valores enum y keyword
    def test_validation(self):
        with pytest.raises(ValidationError):
            JobOptions(print_quality=6)
        with pytest.raises(ValidationError):
            JobOptions(print_color_mode="sepia")
        with pytest.raises(ValidationError):
            JobOptions(media_size_mm=(0, 100))
    # Valores adicionales que no se pueden convertir a IPP se rechazan al crear las opciones
    def test_passthrough_validation(self):
        with pytest.raises(ValidationError):
            JobOptions(passthrough={"copies": 2 ** 31})
        with pytest.raises(ValidationError):
            JobOptions(passthrough={"copies": []})
        with pytest.raises(ValidationError):
            JobOptions(passthrough={"ratio": 1.5})
