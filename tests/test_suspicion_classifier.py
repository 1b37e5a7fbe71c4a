"""
tests/test_suspicion_classifier.py
Suspicion classifier: mode selection, config gate, persistence,
delegated HTTP adapter and silent heuristic fallback.
No network — urlopen is patched, backends are fakes.
"""

import asyncio
import json
import urllib.error
from typing import List, Optional
from unittest.mock import MagicMock, patch

import pytest

from scamshield.classifier.base import ClassifierAdapter
from scamshield.classifier.remote_adapter import RemoteClassifierAdapter
from scamshield.classifier.suspicion import SuspicionClassifier
from scamshield.config import load_config, save_config, DEFAULT_CONFIG
from scamshield.models.record import AIVerdict

SCAM = "click this link to verify your password immediately"


class FakeAdapter(ClassifierAdapter):
    def __init__(self, verdict: Optional[AIVerdict] = None, exc: Exception = None):
        self.verdict = verdict
        self.exc     = exc
        self.calls: List[str] = []

    def classify(self, text: str) -> Optional[AIVerdict]:
        self.calls.append(text)
        if self.exc:
            raise self.exc
        return self.verdict


def _delegated_config(tmp_path, endpoint="https://scoring.example/api"):
    save_config({**DEFAULT_CONFIG, "ai_endpoint": endpoint, "ai_key": "k-123", "mock_mode": False}, tmp_path)


def _urlopen_returning(body: bytes) -> MagicMock:
    mock = MagicMock()
    mock.return_value.__enter__.return_value.read.return_value = body
    return mock


# ── MODE SELECTION ───────────────────────────────────────────

def test_defaults_to_heuristic_without_config(tmp_path):
    classifier = SuspicionClassifier(config_dir=tmp_path)
    verdict = asyncio.run(classifier.classify(SCAM))
    assert verdict.source == "heuristic"
    assert verdict.is_suspicious is True
    assert classifier.mode == "mock"


def test_delegated_mode_uses_backend(tmp_path):
    _delegated_config(tmp_path)
    remote  = AIVerdict(True, "remote says scam", 0.91, source="delegated")
    adapter = FakeAdapter(verdict=remote)
    classifier = SuspicionClassifier(config_dir=tmp_path, adapter=adapter)

    verdict = asyncio.run(classifier.classify("hello"))

    assert verdict == remote
    assert adapter.calls == ["hello"]
    assert classifier.mode == "delegated"


def test_mock_off_but_no_endpoint_uses_heuristic(tmp_path):
    save_config({**DEFAULT_CONFIG, "mock_mode": False}, tmp_path)
    adapter = FakeAdapter(verdict=AIVerdict(True, "x", 1.0, source="delegated"))
    classifier = SuspicionClassifier(config_dir=tmp_path, adapter=adapter)

    verdict = asyncio.run(classifier.classify(SCAM))

    assert verdict.source == "heuristic"
    assert adapter.calls == []


# ── FALLBACK ─────────────────────────────────────────────────

def test_failed_backend_falls_back_to_heuristic(tmp_path):
    _delegated_config(tmp_path)
    classifier = SuspicionClassifier(config_dir=tmp_path, adapter=FakeAdapter(verdict=None))

    verdict = asyncio.run(classifier.classify(SCAM))

    assert verdict.source == "fallback"
    assert verdict.degraded is True
    assert verdict.is_suspicious is True
    assert verdict.confidence == 1.0


def test_raising_backend_falls_back_without_error(tmp_path):
    _delegated_config(tmp_path)
    adapter = FakeAdapter(exc=RuntimeError("boom"))
    classifier = SuspicionClassifier(config_dir=tmp_path, adapter=adapter)

    verdict = asyncio.run(classifier.classify("Hello there"))

    assert verdict.source == "fallback"
    assert verdict.is_suspicious is False


# ── CONFIG GATE & PERSISTENCE ────────────────────────────────

def test_classify_waits_for_config_load(tmp_path):
    _delegated_config(tmp_path)
    adapter = FakeAdapter(verdict=AIVerdict(False, "fine", 0.1, source="delegated"))
    classifier = SuspicionClassifier(config_dir=tmp_path, adapter=adapter)

    assert classifier.is_ready is False
    verdict = asyncio.run(classifier.classify("first request"))

    assert classifier.is_ready is True
    assert verdict.source == "delegated"
    assert adapter.calls == ["first request"]


def test_concurrent_first_requests_all_see_loaded_config(tmp_path):
    _delegated_config(tmp_path)
    adapter = FakeAdapter(verdict=AIVerdict(True, "remote", 0.7, source="delegated"))
    classifier = SuspicionClassifier(config_dir=tmp_path, adapter=adapter)

    async def burst():
        return await asyncio.gather(*(classifier.classify(f"m{i}") for i in range(5)))

    verdicts = asyncio.run(burst())
    assert all(v.source == "delegated" for v in verdicts)
    assert len(adapter.calls) == 5


def test_configure_api_persists_and_switches_mode(tmp_path):
    classifier = SuspicionClassifier(config_dir=tmp_path)
    classifier.configure_api("https://scoring.example/api", "secret")

    saved = load_config(tmp_path)
    assert saved["ai_endpoint"] == "https://scoring.example/api"
    assert saved["ai_key"] == "secret"
    assert saved["mock_mode"] is False
    assert classifier.mode == "delegated"

    fresh = SuspicionClassifier(config_dir=tmp_path)
    asyncio.run(fresh.load())
    assert fresh.mode == "delegated"
    assert fresh.api_key == "secret"


def test_enable_and_disable_mock_mode_persist(tmp_path):
    _delegated_config(tmp_path)
    classifier = SuspicionClassifier(config_dir=tmp_path)

    classifier.enable_mock_mode()
    assert load_config(tmp_path)["mock_mode"] is True
    assert classifier.mode == "mock"
    # endpoint survives the toggle
    assert load_config(tmp_path)["ai_endpoint"] == "https://scoring.example/api"

    classifier.disable_mock_mode()
    assert load_config(tmp_path)["mock_mode"] is False
    assert classifier.mode == "delegated"


# ── REMOTE ADAPTER ───────────────────────────────────────────

def test_remote_adapter_sends_bearer_and_text():
    mock = _urlopen_returning(json.dumps(
        {"isSuspicious": True, "reason": "phishing", "confidence": 0.9}
    ).encode())
    adapter = RemoteClassifierAdapter("https://scoring.example/api", api_key="k-123")

    with patch("scamshield.classifier.remote_adapter.urllib.request.urlopen", mock):
        verdict = adapter.classify("pay now")

    assert verdict == AIVerdict(True, "phishing", 0.9, source="delegated")
    req = mock.call_args[0][0]
    assert req.full_url == "https://scoring.example/api"
    assert req.get_method() == "POST"
    assert req.get_header("Authorization") == "Bearer k-123"
    assert json.loads(req.data.decode()) == {"text": "pay now"}


def test_remote_adapter_applies_defaults_for_missing_fields():
    mock = _urlopen_returning(b"{}")
    adapter = RemoteClassifierAdapter("https://scoring.example/api")

    with patch("scamshield.classifier.remote_adapter.urllib.request.urlopen", mock):
        verdict = adapter.classify("anything")

    assert verdict.is_suspicious is False
    assert verdict.reason == "No explanation provided"
    assert verdict.confidence == 0.5
    assert verdict.source == "delegated"


def test_remote_confidence_is_clamped():
    mock = _urlopen_returning(b'{"isSuspicious": true, "confidence": 7}')
    adapter = RemoteClassifierAdapter("https://scoring.example/api")

    with patch("scamshield.classifier.remote_adapter.urllib.request.urlopen", mock):
        verdict = adapter.classify("anything")

    assert verdict.confidence == 1.0


@pytest.mark.parametrize("side_effect", [
    urllib.error.HTTPError("https://scoring.example/api", 503, "unavailable", None, None),
    urllib.error.URLError("connection refused"),
    TimeoutError("timed out"),
])
def test_remote_adapter_transport_failures_return_none(side_effect):
    adapter = RemoteClassifierAdapter("https://scoring.example/api")
    with patch(
        "scamshield.classifier.remote_adapter.urllib.request.urlopen",
        MagicMock(side_effect=side_effect),
    ):
        assert adapter.classify("anything") is None


@pytest.mark.parametrize("body", [
    b"not json at all",
    b"[1, 2, 3]",
    b'{"confidence": "very"}',
    b'{"isSuspicious": "false", "confidence": 0.9}',
    b'{"isSuspicious": 1}',
])
def test_remote_adapter_malformed_responses_return_none(body):
    adapter = RemoteClassifierAdapter("https://scoring.example/api")
    with patch(
        "scamshield.classifier.remote_adapter.urllib.request.urlopen",
        _urlopen_returning(body),
    ):
        assert adapter.classify("anything") is None


def test_end_to_end_http_failure_gives_fallback_verdict(tmp_path):
    _delegated_config(tmp_path)
    classifier = SuspicionClassifier(config_dir=tmp_path)

    with patch(
        "scamshield.classifier.remote_adapter.urllib.request.urlopen",
        MagicMock(side_effect=urllib.error.URLError("down")),
    ):
        verdict = asyncio.run(classifier.classify(SCAM))

    assert verdict.source == "fallback"
    assert verdict.is_suspicious is True
