"""Hazard type normalization and the image classification client.

The classifier is an external workflow that receives an image URL and
returns predicted class names. Only its input/output contract matters here:
whatever it says is reduced to one of the :class:`HazardType` values before
it reaches the engine.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from roadwatch.core.settings import settings
from roadwatch.models import HazardType

logger = logging.getLogger(__name__)

POTHOLE_TERMS = ("pothole", "hole")
WATERLOGGING_TERMS = ("water", "flood", "puddle")


def normalize_hazard_type(label: str | None) -> HazardType:
    """Map a free-text label to a hazard type.

    Matching is case-insensitive substring search; anything unrecognized
    becomes ``other``.
    """
    normalized = (label or "").lower()
    if any(term in normalized for term in POTHOLE_TERMS):
        return HazardType.POTHOLE
    if any(term in normalized for term in WATERLOGGING_TERMS):
        return HazardType.WATERLOGGING
    return HazardType.OTHER


class ClassifierError(RuntimeError):
    """Raised when the classification workflow fails or answers garbage."""


class ClassifierDisabledError(ClassifierError):
    """Raised when no classification endpoint is configured."""


@dataclass(frozen=True)
class ClassifierConfig:
    """Immutable configuration for the classification workflow."""

    url: str | None
    api_key: str | None
    timeout_seconds: float

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True)
class Classification:
    """Result of classifying one image."""

    labels: list[str]
    hazard_type: HazardType

    @property
    def label(self) -> str:
        return ", ".join(self.labels) if self.labels else "Nothing detected"


def load_classifier_config() -> ClassifierConfig:
    """Build configuration object from global settings."""
    return ClassifierConfig(
        url=settings.classifier_url,
        api_key=settings.classifier_api_key,
        timeout_seconds=float(settings.classifier_timeout_seconds),
    )


def extract_labels(payload: Mapping[str, Any]) -> list[str]:
    """Pull predicted class names out of a workflow response.

    Expected shape: ``{"outputs": [{"model_predictions": {"predictions":
    [{"class": "pothole"}, ...]}}]}``. Missing sections yield no labels.
    """
    outputs = payload.get("outputs") or []
    if not outputs or not isinstance(outputs[0], Mapping):
        return []
    predictions = (outputs[0].get("model_predictions") or {}).get("predictions") or []
    return [str(p["class"]) for p in predictions if isinstance(p, Mapping) and "class" in p]


class ClassifierClient:
    """HTTP client wrapper for the image classification workflow."""

    def __init__(
        self,
        config: ClassifierConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_classifier_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise ClassifierDisabledError("Image classification is not configured")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def classify(self, image_url: str) -> Classification:
        """Classify the image at ``image_url``.

        Raises:
            ClassifierDisabledError: If no endpoint is configured.
            ClassifierError: On transport errors or a non-2xx response.
        """
        client = await self._ensure_client()
        body = {
            "api_key": self.config.api_key,
            "inputs": {"image": {"type": "url", "value": image_url}},
        }
        try:
            response = await client.post(self.config.url or "", json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as err:
            raise ClassifierError(
                f"Classifier returned {err.response.status_code}"
            ) from err
        except (httpx.HTTPError, ValueError) as err:
            raise ClassifierError(f"Classifier request failed: {err}") from err

        labels = extract_labels(payload) if isinstance(payload, Mapping) else []
        result = Classification(labels=labels, hazard_type=normalize_hazard_type(" ".join(labels)))
        logger.info("Classified %s as %s (%s)", image_url, result.hazard_type.value, result.label)
        return result

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class _ClassifierClientSingleton:
    """Singleton wrapper for ClassifierClient."""

    _instance: ClassifierClient | None = None

    @classmethod
    def get_instance(cls) -> ClassifierClient:
        if cls._instance is None:
            cls._instance = ClassifierClient()
        return cls._instance


def get_classifier_client() -> ClassifierClient:
    """Return a singleton classifier client instance."""
    return _ClassifierClientSingleton.get_instance()
