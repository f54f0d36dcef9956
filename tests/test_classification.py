# tests/test_classification.py
"""Tests for hazard type normalization and the classifier client."""

from __future__ import annotations

import json

import httpx
import pytest

from roadwatch.models import HazardType
from roadwatch.services.classification import (
    ClassifierClient,
    ClassifierConfig,
    ClassifierDisabledError,
    ClassifierError,
    extract_labels,
    normalize_hazard_type,
)

ENDPOINT = "https://classifier.test/workflow"


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Pothole", HazardType.POTHOLE),
        ("road hole, cracks", HazardType.POTHOLE),
        ("Waterlogging", HazardType.WATERLOGGING),
        ("flooded street", HazardType.WATERLOGGING),
        ("big puddle", HazardType.WATERLOGGING),
        ("fallen tree", HazardType.OTHER),
        ("", HazardType.OTHER),
        (None, HazardType.OTHER),
    ],
)
def test_normalize_hazard_type(label, expected) -> None:
    assert normalize_hazard_type(label) is expected


def test_pothole_wins_over_water() -> None:
    assert normalize_hazard_type("water-filled pothole") is HazardType.POTHOLE


def test_extract_labels() -> None:
    payload = {
        "outputs": [
            {"model_predictions": {"predictions": [{"class": "pothole"}, {"class": "crack"}, {"x": 1}]}}
        ]
    }
    assert extract_labels(payload) == ["pothole", "crack"]
    assert extract_labels({}) == []
    assert extract_labels({"outputs": [{}]}) == []


def _client(handler) -> ClassifierClient:
    config = ClassifierConfig(url=ENDPOINT, api_key="secret", timeout_seconds=5)
    return ClassifierClient(config=config, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_classify_posts_image_url() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"outputs": [{"model_predictions": {"predictions": [{"class": "Flooding"}]}}]},
        )

    client = _client(handler)
    try:
        result = await client.classify("https://img.test/1.jpg")
    finally:
        await client.close()

    assert seen["url"] == ENDPOINT
    assert seen["body"] == {
        "api_key": "secret",
        "inputs": {"image": {"type": "url", "value": "https://img.test/1.jpg"}},
    }
    assert result.labels == ["Flooding"]
    assert result.label == "Flooding"
    assert result.hazard_type is HazardType.WATERLOGGING


@pytest.mark.asyncio
async def test_classify_without_predictions() -> None:
    client = _client(lambda request: httpx.Response(200, json={"outputs": []}))
    result = await client.classify("https://img.test/2.jpg")
    await client.close()

    assert result.label == "Nothing detected"
    assert result.hazard_type is HazardType.OTHER


@pytest.mark.asyncio
async def test_classify_error_status() -> None:
    client = _client(lambda request: httpx.Response(502))
    with pytest.raises(ClassifierError):
        await client.classify("https://img.test/3.jpg")
    await client.close()


@pytest.mark.asyncio
async def test_disabled_client() -> None:
    client = ClassifierClient(config=ClassifierConfig(url=None, api_key=None, timeout_seconds=1))
    assert not client.enabled
    with pytest.raises(ClassifierDisabledError):
        await client.classify("https://img.test/4.jpg")
