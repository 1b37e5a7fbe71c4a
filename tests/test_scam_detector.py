"""
tests/test_scam_detector.py
Analysis pipeline: scan + classify + combine, then notification sink
and history store. Classifier runs in mock mode against a temp config dir.
"""

import asyncio

import pytest

from scamshield.classifier.suspicion import SuspicionClassifier
from scamshield.detectors.scam_detector import ScamDetector
from scamshield.history.sqlite_store import HistoryStore
from scamshield.models.record import (
    AIVerdict,
    CombinedAnalysis,
    DetectionResult,
    Notification,
    Severity,
)
from scamshield.notifier import CallbackNotifier, LogNotifier, build_notification

SCAM = "URGENT: verify your account now or it will be suspended. Send payment via wire transfer."


@pytest.fixture
def sent():
    return []


@pytest.fixture
def detector(tmp_path, sent):
    return ScamDetector(
        classifier = SuspicionClassifier(config_dir=tmp_path),
        history    = HistoryStore(tmp_path / "history.db"),
        notifier   = CallbackNotifier(sent.append),
    )


def _analysis(severity: Severity, suspicious: bool) -> CombinedAnalysis:
    return CombinedAnalysis(
        keyword_detection = DetectionResult(flagged=False, score=0),
        ai_detection      = AIVerdict(suspicious, "r", 0.5),
        final_score       = 0.2,
        overall_severity  = severity,
        is_suspicious     = suspicious,
        recommendation    = "",
        timestamp         = 0,
        message_text      = "t",
    )


# ── PIPELINE ─────────────────────────────────────────────────

def test_scam_message_end_to_end(detector, sent):
    analysis = asyncio.run(detector.analyze(SCAM, "selection"))

    assert analysis.is_suspicious is True
    assert analysis.overall_severity is Severity.CRITICAL
    assert analysis.source == "selection"
    assert analysis.ai_detection.source == "heuristic"
    assert "wire transfer" in analysis.keyword_detection.matches

    assert len(sent) == 1
    assert sent[0].severity is Severity.CRITICAL
    assert sent[0].urgent is True

    assert detector.history.count() == 1
    assert detector.history.stats() == {"totalScans": 1, "scamsDetected": 1}
    assert detector.get_last_analysis() is analysis


def test_benign_message_is_stored_but_not_notified(detector, sent):
    analysis = asyncio.run(detector.analyze("Hello, how are you today?"))

    assert analysis.is_suspicious is False
    assert analysis.overall_severity is Severity.LOW
    assert sent == []
    assert detector.history.stats() == {"totalScans": 1, "scamsDetected": 0}


def test_last_analysis_tracks_most_recent(detector):
    asyncio.run(detector.analyze(SCAM))
    second = asyncio.run(detector.analyze("Hello, how are you today?"))
    assert detector.get_last_analysis() is second


@pytest.mark.parametrize("text, source", [
    ("", "input"),
    ("   ", "input"),
    ("hello there", "clipboard"),
])
def test_invalid_requests_raise_value_error(detector, text, source):
    with pytest.raises(ValueError):
        asyncio.run(detector.analyze(text, source))


def test_failing_sink_does_not_break_analysis(tmp_path):
    def explode(_):
        raise RuntimeError("notification backend down")

    detector = ScamDetector(
        classifier = SuspicionClassifier(config_dir=tmp_path),
        history    = HistoryStore(tmp_path / "h.db"),
        notifier   = CallbackNotifier(explode),
    )
    analysis = asyncio.run(detector.analyze(SCAM))
    assert analysis.is_suspicious is True
    assert detector.history.count() == 1


def test_runs_without_history(tmp_path):
    detector = ScamDetector(classifier=SuspicionClassifier(config_dir=tmp_path))
    analysis = asyncio.run(detector.analyze(SCAM))
    assert analysis.overall_severity is Severity.CRITICAL


# ── NOTIFICATIONS ────────────────────────────────────────────

@pytest.mark.parametrize("severity, suspicious", [
    (Severity.LOW, True),
    (Severity.LOW, False),
    (Severity.HIGH, False),
])
def test_no_notification_unless_suspicious_and_above_low(severity, suspicious):
    assert build_notification(_analysis(severity, suspicious)) is None


def test_notification_content_by_tier():
    high = build_notification(_analysis(Severity.HIGH, True))
    assert high == Notification(
        severity = Severity.HIGH,
        title    = "Warning: Likely Scam",
        message  = "This message is very likely a scam attempt.",
        urgent   = False,
    )
    assert high.priority == 1

    critical = build_notification(_analysis(Severity.CRITICAL, True))
    assert critical.urgent is True
    assert critical.priority == 2
    assert critical.title == "DANGER: Scam Detected"


def test_log_notifier_writes_warning_for_urgent(caplog):
    note = build_notification(_analysis(Severity.CRITICAL, True))
    with caplog.at_level("INFO", logger="scamshield.notifier"):
        LogNotifier().send(note)
    assert "DANGER: Scam Detected" in caplog.text
    assert caplog.records[-1].levelname == "WARNING"
