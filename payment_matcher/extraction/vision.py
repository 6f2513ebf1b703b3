"""Payment proof extraction with a vision model."""

import base64
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import openai

from payment_matcher.config import Settings, load_settings
from payment_matcher.engine.models import ExtractionResult
from payment_matcher.parsers.extraction_parser import ExtractionParser

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
}

EXTRACTION_PROMPT = """Analyse ce ou ces justificatifs de paiement français (ils peuvent contenir plusieurs pages avec plusieurs paiements).

Retourne UNIQUEMENT du JSON valide (pas de markdown, pas de blocs de code):

{
  "emetteur": "société émettrice",
  "date_virement": "JJ-MM-AAAA",
  "paiements": [
    {
      "beneficiaire": "nom exact du bénéficiaire",
      "montant": nombre_sans_symbole,
      "date": "JJ-MM-AAAA",
      "reference": "référence du paiement si visible"
    }
  ]
}

IMPORTANT:
- date_virement: la date du virement ou de l'ordre de paiement (souvent en haut du document)
- Dates au format JJ-MM-AAAA (ex: 05-09-2025 pour le 5 septembre 2025)
- Montant: nombre pur sans symbole (1 000,50 € devient 1000.50)
- Extrais TOUS les paiements visibles, une entrée par ligne du tableau
- Aucune explication, uniquement le JSON"""

_FENCE_RE = re.compile(r"```(?:json)?\s*")


class ExtractionError(Exception):
    """The payment proofs could not be read; the user should upload them again."""


def strip_code_fences(content: str) -> str:
    """Remove Markdown code fences a model may wrap its JSON in."""
    return _FENCE_RE.sub("", content).strip()


def document_url(document: str) -> str:
    """
    Return the URL to send for a document.

    http(s) and data URLs are sent as-is; local files are inlined as base64
    data URLs.

    Raises:
        FileNotFoundError: If a local file doesn't exist.
        ValueError: If a local file has an unsupported extension.
    """
    if document.startswith(("http://", "https://", "data:")):
        return document

    path = Path(document)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    mime_type = MIME_TYPES.get(path.suffix.lower())
    if mime_type is None:
        supported = ", ".join(sorted(MIME_TYPES))
        raise ValueError(f"Unsupported document format: {path.suffix}. Use one of {supported}")

    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class VisionExtractor:
    """Read payment lines off payment proof images with an OpenAI vision model."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Any = None,
        parser: Optional[ExtractionParser] = None,
    ):
        """
        Args:
            settings: Model settings; loaded from the environment when omitted.
            client: An OpenAI client. Built from settings.openai_api_key when omitted.
            parser: Parser for the model's JSON reply.

        Raises:
            ExtractionError: If no client is given and no API key is configured.
        """
        self.settings = settings or load_settings()
        self.parser = parser or ExtractionParser()

        if client is None:
            if not self.settings.openai_api_key:
                raise ExtractionError("OPENAI_API_KEY is not set")
            client = openai.OpenAI(api_key=self.settings.openai_api_key)
        self.client = client

    def build_messages(self, documents: Sequence[str]) -> List[Dict[str, Any]]:
        """Build the chat messages: the prompt followed by one image part per document."""
        content: List[Dict[str, Any]] = [{"type": "text", "text": EXTRACTION_PROMPT}]

        for document in documents:
            if not document or not document.strip():
                continue
            content.append({
                "type": "image_url",
                "image_url": {"url": document_url(document.strip())},
            })

        return [{"role": "user", "content": content}]

    def extract(self, documents: Sequence[str]) -> ExtractionResult:
        """
        Extract every payment line from a batch of documents in one model call.

        Args:
            documents: URLs or local paths of the payment proof pages.

        Returns:
            The ExtractionResult read off the documents.

        Raises:
            ValueError: If no document is given.
            ExtractionError: If the model call fails or its reply can't be read.
        """
        messages = self.build_messages(documents)
        image_count = len(messages[0]["content"]) - 1
        if image_count == 0:
            raise ValueError("No document provided")

        logger.info("Calling %s with %d document(s)", self.settings.vision_model, image_count)

        try:
            response = self.client.chat.completions.create(
                model=self.settings.vision_model,
                messages=messages,
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
        except openai.OpenAIError as e:
            logger.error("Vision API error: %s", e)
            raise ExtractionError(f"Vision API failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExtractionError("Vision API returned an empty reply")

        return self._parse_reply(content)

    def _parse_reply(self, content: str) -> ExtractionResult:
        cleaned = strip_code_fences(content)
        logger.debug("Vision reply: %s", cleaned)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON from vision API: %s", cleaned[:500])
            raise ExtractionError("Invalid JSON response from vision API") from e

        try:
            result = self.parser.parse_payload(data)
        except ValueError as e:
            raise ExtractionError(str(e)) from e

        logger.info("%d payment(s) extracted", len(result.payments))
        return result
