"""OCR services package."""

from fcd_tracker.services.ocr.dates import local_now, parse_extracted_date
from fcd_tracker.services.ocr.typhoon_service import (
    ExtractionFailedError,
    OCRError,
    SlipRejectedError,
    TyphoonOCRService,
    parse_slip_text,
)

__all__ = [
    "ExtractionFailedError",
    "OCRError",
    "SlipRejectedError",
    "TyphoonOCRService",
    "local_now",
    "parse_extracted_date",
    "parse_slip_text",
]
