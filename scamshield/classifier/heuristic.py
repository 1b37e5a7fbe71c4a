"""
scamshield/classifier/heuristic.py
Rule-based suspicion evaluator. Used in mock mode and as the fallback
when the remote scoring service is unavailable.

Each signal fires independently and adds a fixed increment; the total
is capped at 1.0 and used as confidence.
"""

import re
from typing import List

from scamshield.models.record import AIVerdict

SUSPICION_THRESHOLD = 0.4
LONG_MESSAGE_CHARS  = 500
NOTHING_DETECTED    = 'No significant suspicious patterns detected'

_URL_RE = re.compile(r'https?://')


def evaluate(text: str, source: str = 'heuristic') -> AIVerdict:
    """Score text against the fixed signal set. Pure, never raises."""
    text  = text or ''
    lower = text.lower()
    score = 0.0
    reasons: List[str] = []

    if 'urgent' in lower or 'immediate' in lower:
        score += 0.3
        reasons.append('Uses urgent language')

    if 'click' in lower and 'link' in lower:
        score += 0.25
        reasons.append('Contains clickable link request')

    if 'verify' in lower or 'confirm' in lower:
        score += 0.2
        reasons.append('Requests verification')

    if 'account' in lower and ('suspend' in lower or 'lock' in lower):
        score += 0.4
        reasons.append('Threatens account suspension')

    if 'password' in lower or 'credit card' in lower or 'ssn' in lower:
        score += 0.5
        reasons.append('Requests sensitive information')

    if 'gift card' in lower or 'wire transfer' in lower:
        score += 0.6
        reasons.append('Requests unusual payment method')

    if len(_URL_RE.findall(text)) >= 2:
        score += 0.2
        reasons.append('Contains multiple URLs')

    # Compounding: only once something else already looks off
    if len(text) > LONG_MESSAGE_CHARS and score > 0.3:
        score += 0.1
        reasons.append('Long message with suspicious content')

    confidence    = min(score, 1.0)
    is_suspicious = confidence >= SUSPICION_THRESHOLD

    return AIVerdict(
        is_suspicious = is_suspicious,
        reason        = '; '.join(reasons) if reasons else NOTHING_DETECTED,
        confidence    = confidence,
        source        = source,
    )
