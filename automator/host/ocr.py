"""OCR text and document extraction."""

from __future__ import annotations

from .base import CapabilityBinding
from .models import OcrDocument

DEFAULT_OCR_MODEL = "glm-ocr:latest"
DEFAULT_OCR_BASE_URL = "http://127.0.0.1:11434"


class OcrReader(CapabilityBinding):
    namespace = "ocr"

    async def extract_text(self, pdf_path: str) -> str:
        return await self._call("extract_text", pdf_path)

    async def extract_document(
        self, pdf_path: str, model: str | None = None, base_url: str | None = None
    ) -> OcrDocument:
        """Structured extraction of every page through a local vision model."""
        return await self._call_json(
            "extract_document",
            OcrDocument,
            pdf_path,
            model or DEFAULT_OCR_MODEL,
            base_url or DEFAULT_OCR_BASE_URL,
        )
