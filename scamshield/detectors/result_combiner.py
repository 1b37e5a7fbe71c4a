"""
scamshield/detectors/result_combiner.py
Merges the keyword scan and the classifier verdict into one
CombinedAnalysis: blended score, escalated severity, suspicious flag
and a recommendation sentence for the user.

Both inputs are brought onto the same 0..1 scale before blending:
raw keyword score / MAX_EXPECTED_KEYWORD_SCORE (capped at 1.0), and
classifier confidence as-is. UI code shows final_score × 100.
"""

import time
from typing import List, Optional

from scamshield.models.record import (
    AIVerdict,
    CombinedAnalysis,
    DetectionResult,
    Severity,
)

MAX_EXPECTED_KEYWORD_SCORE = 200
KEYWORD_WEIGHT             = 0.6
CLASSIFIER_WEIGHT          = 0.4
SUSPICION_THRESHOLD        = 0.5
CRITICAL_CONFIDENCE        = 0.8
HIGH_CONFIDENCE            = 0.6

SAFE_MESSAGE = 'This message appears safe. No significant scam indicators detected.'

LEAD_SENTENCES = {
    Severity.CRITICAL: 'HIGH RISK: Do not respond or take any action.',
    Severity.HIGH:     'WARNING: Exercise extreme caution.',
}
DEFAULT_LEAD = 'CAUTION: This message shows some suspicious signs.'

# Category name → advisory, in output order
CATEGORY_ADVICE = [
    ('payment_method', 'Never pay with gift cards or wire transfers for legitimate services.'),
    ('sensitive_data', 'Never share passwords or personal information via message.'),
    ('urgency',        'Legitimate organizations rarely demand immediate action.'),
]

CLOSING_LINE = (
    'When in doubt, contact the organization directly '
    'using official contact information.'
)


def normalize_keyword_score(raw_score: int) -> float:
    if raw_score <= 0:
        return 0.0
    return min(raw_score / MAX_EXPECTED_KEYWORD_SCORE, 1.0)


def blend_score(detection: DetectionResult, verdict: AIVerdict) -> float:
    blended = (
        normalize_keyword_score(detection.score) * KEYWORD_WEIGHT
        + verdict.confidence * CLASSIFIER_WEIGHT
    )
    return round(min(max(blended, 0.0), 1.0), 4)


def determine_severity(detection: DetectionResult, verdict: AIVerdict) -> Severity:
    kw = detection.severity
    ai = verdict.is_suspicious

    if kw is Severity.CRITICAL or (ai and verdict.confidence >= CRITICAL_CONFIDENCE):
        return Severity.CRITICAL
    if kw is Severity.HIGH or (ai and verdict.confidence >= HIGH_CONFIDENCE):
        return Severity.HIGH
    if kw is Severity.MEDIUM or ai:
        return Severity.MEDIUM
    return Severity.LOW


def is_suspicious(detection: DetectionResult, verdict: AIVerdict, final_score: float) -> bool:
    return (
        (detection.flagged and detection.severity is not Severity.LOW)
        or verdict.is_suspicious
        or final_score >= SUSPICION_THRESHOLD
    )


def build_recommendation(
    suspicious: bool,
    severity:   Severity,
    detection:  DetectionResult,
    verdict:    AIVerdict,
) -> str:
    if not suspicious:
        return SAFE_MESSAGE

    parts: List[str] = [LEAD_SENTENCES.get(severity, DEFAULT_LEAD)]

    matched = set(detection.matched_categories)
    for category, advice in CATEGORY_ADVICE:
        if category in matched:
            parts.append(advice)

    if verdict.is_suspicious:
        parts.append(f'AI Analysis: {verdict.reason}')

    parts.append(CLOSING_LINE)
    return ' '.join(parts)


def combine(
    detection: DetectionResult,
    verdict:   AIVerdict,
    text:      str,
    source:    str           = 'input',
    timestamp: Optional[int] = None,
) -> CombinedAnalysis:
    """Total function of its inputs — never raises on valid model objects."""
    final_score = blend_score(detection, verdict)
    severity    = determine_severity(detection, verdict)
    suspicious  = is_suspicious(detection, verdict, final_score)

    return CombinedAnalysis(
        keyword_detection = detection,
        ai_detection      = verdict,
        final_score       = final_score,
        overall_severity  = severity,
        is_suspicious     = suspicious,
        recommendation    = build_recommendation(suspicious, severity, detection, verdict),
        timestamp         = timestamp if timestamp is not None else int(time.time() * 1000),
        message_text      = text,
        source            = source,
    )
