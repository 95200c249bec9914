"""
OCR Service using Typhoon

Sends an FX transfer slip image to the Typhoon OCR API and reads the
amounts, rate and date out of the returned text.

This service handles:
1. Checking the upload (type and size) before spending an API call
2. Sending the image to Typhoon
3. Scanning the page texts for THB / USD / rate / date
4. Converting the result to our ExtractedFields model

CRITICAL: This service ONLY extracts. Missing fields are fine;
the validator decides whether the resulting draft is acceptable.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fcd_tracker.config import get_settings
from fcd_tracker.config.settings import AppSettings, TyphoonSettings
from fcd_tracker.models.entry import ExtractedFields, ImageUpload


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class SlipRejectedError(OCRError):
    """The upload is not something we send to OCR (type or size)."""
    pass


class ExtractionFailedError(OCRError):
    """No usable fields could be extracted from the slip."""
    pass


_NUMBER = r"([0-9,]+\.?\d*)"

_THB_PATTERNS = [
    re.compile(rf"Exchange from\s+{_NUMBER}\s*THB", re.IGNORECASE),
    re.compile(r"([0-9,]+\.?\d+)\s*THB", re.IGNORECASE),
]
_USD_PATTERNS = [
    re.compile(rf"To\s+{_NUMBER}\s*USD", re.IGNORECASE),
    re.compile(r"([0-9,]+\.?\d+)\s*USD", re.IGNORECASE),
]
_RATE_PATTERNS = [
    re.compile(r"1\s*USD\s*=\s*([0-9.,]+)\s*THB", re.IGNORECASE),
]
_DATE_TEXT = r"(\d{1,2}\s+\w+\s+\d{4}(?:\s*-\s*\d{1,2}:\d{2}\s*[AP]M)?)"
_DATE_PATTERNS = [
    re.compile(rf"Submission Date.*?{_DATE_TEXT}", re.IGNORECASE | re.DOTALL),
    re.compile(_DATE_TEXT, re.IGNORECASE),
]


def _first_match(patterns: list[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _to_decimal(value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value.replace(",", "").rstrip("."))
    except InvalidOperation:
        return None


def parse_slip_text(content: str) -> Optional[ExtractedFields]:
    """
    Read slip fields out of OCR text.

    Returns:
        ExtractedFields, or None when no amount or rate was found
        (a date on its own is not enough)
    """
    fields = ExtractedFields(
        thb=_to_decimal(_first_match(_THB_PATTERNS, content)),
        usd=_to_decimal(_first_match(_USD_PATTERNS, content)),
        rate=_to_decimal(_first_match(_RATE_PATTERNS, content)),
        date=_first_match(_DATE_PATTERNS, content),
        raw_text=content,
    )
    return fields if fields.has_amounts else None


class TyphoonOCRService:
    """
    OCR service for FX slips using the Typhoon API.

    IMPORTANT BOUNDARIES:
    1. This service ONLY extracts data - it does NOT validate entries
    2. A failed page or a slip with no amounts is an error
    3. A slip with some fields missing is NOT an error
    """

    def __init__(
        self,
        settings: Optional[TyphoonSettings] = None,
        app_settings: Optional[AppSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings().typhoon
        self._app_settings = app_settings or get_settings().app
        self._transport = transport

    def check_upload(self, upload: ImageUpload) -> None:
        """
        Reject uploads that should not be sent to OCR.

        Raises:
            SlipRejectedError: If the file is too large or of an unsupported format
        """
        if upload.file_size_bytes > self._app_settings.max_upload_size_bytes:
            raise SlipRejectedError(
                f"Image is larger than {self._app_settings.max_upload_size_mb} MB"
            )
        extension = upload.original_filename.rsplit(".", 1)[-1].lower()
        if extension not in self._app_settings.supported_formats_list:
            raise SlipRejectedError(f"Unsupported image format: .{extension}")

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _request_ocr(self, image_bytes: bytes, upload: ImageUpload) -> dict:
        """POST the image to Typhoon; transport errors are retried."""
        settings = self._settings
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=settings.timeout_seconds,
        ) as client:
            response = await client.post(
                f"{settings.base_url.rstrip('/')}/ocr",
                headers={"Authorization": f"Bearer {settings.api_key}"},
                files={"file": (upload.original_filename, image_bytes, upload.mime_type)},
                data={
                    "model": settings.model,
                    "task_type": settings.task_type,
                    "max_tokens": str(settings.max_tokens),
                    "temperature": str(settings.temperature),
                    "top_p": str(settings.top_p),
                    "repetition_penalty": str(settings.repetition_penalty),
                },
            )

        if response.is_error:
            raise ExtractionFailedError(f"Typhoon OCR failed: {response.text}")
        return response.json()

    async def extract_fields(
        self,
        image_bytes: bytes,
        upload: ImageUpload,
    ) -> ExtractedFields:
        """
        Extract slip fields from an image.

        Args:
            image_bytes: Raw image content
            upload: Metadata of the upload

        Returns:
            ExtractedFields from the first page that yields any amount

        Raises:
            SlipRejectedError: If the upload fails check_upload
            ExtractionFailedError: If OCR fails or nothing usable is found
        """
        self.check_upload(upload)

        try:
            payload = await self._request_ocr(image_bytes, upload)
        except OCRError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise ExtractionFailedError(f"Failed to reach Typhoon OCR: {e}")

        for page in payload.get("results") or []:
            if not page.get("success"):
                raise ExtractionFailedError(
                    f"OCR processing failed: {page.get('error') or 'Unknown error'}"
                )
            message = page.get("message")
            if not message:
                continue
            try:
                content = message["choices"][0]["message"]["content"]
            except (KeyError, IndexError, TypeError):
                continue

            fields = parse_slip_text(content or "")
            if fields is not None:
                return fields

        raise ExtractionFailedError("Could not extract structured data from OCR result")
