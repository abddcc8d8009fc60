import os

class PrintSettings:

    # Conexión con la impresora
    PRINTER_URI = os.getenv('PRINTER_URI', None)
    IPP_USER = os.getenv('IPP_USER') or os.getenv('USER') or 'noname'
    IPP_TIMEOUT = float(os.getenv('IPP_TIMEOUT', 0)) or None  # 0 = sin timeout, espera hasta la respuesta
    IPP_VERIFY_TLS = os.getenv('IPP_VERIFY_TLS', 'true').lower() in ['true', '1', 'yes']

    # Protocolo IPP
    IPP_VERSION = "2.0"
    IPP_CHARSET = "utf-8"
    IPP_NATURAL_LANGUAGE = "en"

    # Página y ubicación de la imagen - foto 4x6 pulgadas por defecto
    PAGE_WIDTH_MM = float(os.getenv('PAGE_WIDTH_MM', 101.6))
    PAGE_HEIGHT_MM = float(os.getenv('PAGE_HEIGHT_MM', 152.4))
    IMAGE_DPI = float(os.getenv('IMAGE_DPI', 300))
    PLACEMENT = os.getenv('PLACEMENT', 'fixed')  # fixed, native, centered
    ALLOW_OVERFLOW = os.getenv('ALLOW_OVERFLOW', 'true').lower() in ['true', '1', 'yes']

    # Atributos del trabajo - keyword media heredado que corresponde a 4x6
    DEFAULT_MEDIA = os.getenv('DEFAULT_MEDIA', 'w288h432')
    INCLUDE_MEDIA_COL = os.getenv('INCLUDE_MEDIA_COL', 'true').lower() in ['true', '1', 'yes']
    PRINT_COLOR_MODE = os.getenv('PRINT_COLOR_MODE', 'color')
    PRINT_QUALITY = int(os.getenv('PRINT_QUALITY', 4))  # 3 borrador, 4 normal, 5 alta
    PRINT_SCALING = os.getenv('PRINT_SCALING', 'auto')

    # Enviar el PDF desde un archivo temporal en vez de memoria
    USE_TEMP_FILE = os.getenv('USE_TEMP_FILE', 'false').lower() in ['true', '1', 'yes']

    # Registro
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', None)  # None = solo consola

    VERSION = "0.1.0"

    PLACEMENTS = ['fixed', 'native', 'centered']
    PRINT_QUALITIES = [3, 4, 5]

    @classmethod
    def ipp_version(cls):
        major, minor = cls.IPP_VERSION.split('.')
        return int(major), int(minor)

    @classmethod
    def validate_config(cls):
        errors = []

        if cls.PRINTER_URI and not cls.PRINTER_URI.lower().startswith(('ipp://', 'ipps://', 'http://', 'https://')):
            errors.append("PRINTER_URI must use ipp://, ipps://, http:// or https://")

        if cls.PAGE_WIDTH_MM <= 0 or cls.PAGE_HEIGHT_MM <= 0:
            errors.append("PAGE_WIDTH_MM and PAGE_HEIGHT_MM must be positive")

        if cls.IMAGE_DPI <= 0:
            errors.append("IMAGE_DPI must be positive")

        if cls.PLACEMENT not in cls.PLACEMENTS:
            errors.append(f"PLACEMENT must be one of {', '.join(cls.PLACEMENTS)}")

        if cls.PRINT_QUALITY not in cls.PRINT_QUALITIES:
            errors.append("PRINT_QUALITY should be 3 (draft), 4 (normal) or 5 (high)")

        if cls.IPP_TIMEOUT is not None and cls.IPP_TIMEOUT < 0:
            errors.append("IPP_TIMEOUT cannot be negative")

        return errors

# Instancia de configuración por defecto
settings = PrintSettings()
