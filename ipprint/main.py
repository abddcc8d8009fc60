#!/usr/bin/env python3
"""
ipprint - Main Entry Point

Prints an image (or an existing PDF) on a network printer over IPP. Images are
wrapped in a single-page PDF and sent with a Print-Job request.

Usage:
    ipprint PRINTER_URI FILE [key=value ...]

Options:
    --placement NAME    Image placement: fixed, native, centered (default: fixed)
    --dpi DPI           Image resolution used for placement (default: 300)
    --page-width-mm MM  Page width (default: 101.6)
    --page-height-mm MM Page height (default: 152.4)
    --media KEYWORD     media attribute (default: w288h432)
    --color-mode MODE   print-color-mode (default: color)
    --quality N         print-quality 3, 4 or 5 (default: 4)
    --scaling KEYWORD   print-scaling (default: auto)
    --no-query          Skip Get-Printer-Attributes
    --use-file          Send the PDF from a temporary file
    --save-pdf PATH     Also write the generated PDF to PATH
    --log-level LEVEL   Logging level (default: INFO)
    --log-file PATH     Log file path (default: console only)

Environment Variables:
    PRINTER_URI         Default printer URI
    IPP_USER            requesting-user-name (falls back to USER)
    IPP_TIMEOUT         Transport timeout in seconds (0 = none)
    PLACEMENT           Default image placement
    LOG_LEVEL           Logging level
"""

import argparse
import sys
import logging
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

# Load .env before settings read the environment
load_dotenv()

from .config.settings import settings
from .config.options import JobOptions, SessionConfig
from .converter import ConversionError, load_document
from .ipp.ipp_client import TransportError
from .ipp.ipp_parser import MalformedMessage
from .pdf.image_embedder import GeometryOverflow
from .pdf.pdf_writer import GraphIncomplete
from .session import PrintSession, SessionStateError, UnsupportedStatus
from .utils import (
    format_attribute_groups, format_status, parse_attribute_pairs,
    setup_logging, validate_configuration,
)

logger = logging.getLogger(__name__)

def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        prog='ipprint',
        description='Print an image or PDF on an IPP printer',
    )
    parser.add_argument('printer_uri', help='Printer URI (ipp:// or ipps://)')
    parser.add_argument('file', help='Image (JPEG, PNG, ...) or PDF file to print')
    parser.add_argument('attributes', nargs='*', metavar='key=value',
                        help='Additional job attributes')
    parser.add_argument('--placement', choices=settings.PLACEMENTS, help='Image placement on the page')
    parser.add_argument('--dpi', type=float, help='Image resolution for placement')
    parser.add_argument('--page-width-mm', type=float, help='Page width in millimeters')
    parser.add_argument('--page-height-mm', type=float, help='Page height in millimeters')
    parser.add_argument('--media', help='media keyword')
    parser.add_argument('--color-mode', help='print-color-mode keyword')
    parser.add_argument('--quality', type=int, choices=settings.PRINT_QUALITIES, help='print-quality enum')
    parser.add_argument('--scaling', help='print-scaling keyword')
    parser.add_argument('--no-query', action='store_true', help='Skip Get-Printer-Attributes')
    parser.add_argument('--use-file', action='store_true', help='Send the PDF from a temporary file')
    parser.add_argument('--save-pdf', metavar='PATH', help='Write the generated PDF to PATH')
    parser.add_argument('--log-level', help='Logging level')
    parser.add_argument('--log-file', help='Log file path')
    return parser.parse_args(argv)

def run(args) -> int:
    try:
        config = SessionConfig.from_settings(
            settings,
            printer_uri=args.printer_uri,
            placement=args.placement,
            dpi=args.dpi,
            page_width_mm=args.page_width_mm,
            page_height_mm=args.page_height_mm,
            use_file=True if args.use_file else None,
        )
        media_size = (config.page_width_mm, config.page_height_mm) if settings.INCLUDE_MEDIA_COL else None
        options = JobOptions.from_settings(
            settings,
            job_name=Path(args.file).name,
            media=args.media,
            media_size_mm=media_size,
            print_color_mode=args.color_mode,
            print_quality=args.quality,
            print_scaling=args.scaling,
            passthrough=parse_attribute_pairs(args.attributes),
        )
        document, document_format = load_document(args.file)
        session = PrintSession(config)
    except (ValidationError, ValueError, ConversionError) as e:
        logger.error(f"Invalid input: {e}")
        return 1

    logger.info(f"Printing {args.file} ({document_format}) on {config.printer_uri}")

    with session:
        try:
            if not args.no_query:
                printer_attributes = session.query_attributes()
                print("Printer attributes:")
                for line in format_attribute_groups(printer_attributes):
                    print(line)

            session.build_job(document, options)
            if args.save_pdf:
                Path(args.save_pdf).write_bytes(session.pdf_data)
                logger.info(f"PDF saved to {args.save_pdf}")

            response = session.send()

        except UnsupportedStatus as e:
            if e.response is not None:
                print(format_status(e.response))
                for line in format_attribute_groups(e.response):
                    print(line)
            return 1
        except (TransportError, MalformedMessage, GeometryOverflow, SessionStateError,
                OSError, ValueError, TypeError) as e:
            logger.error(f"{type(e).__name__}: {e}")
            return 1
        except GraphIncomplete:
            logger.exception("Internal error while building the PDF")
            return 2

    print(format_status(response))
    for line in format_attribute_groups(response):
        print(line)
    return 0

def main(argv=None) -> int:
    args = parse_arguments(argv)
    setup_logging(args.log_level, args.log_file)

    if not validate_configuration():
        logger.error("Configuration validation failed, exiting")
        return 1

    return run(args)

if __name__ == "__main__":
    sys.exit(main())
