"""
scamshield/classifier/base.py
Abstract base class for delegated classification backends.
To add a new backend: subclass ClassifierAdapter and implement classify().
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from scamshield.models.record import AIVerdict

DEFAULT_REASON     = 'No explanation provided'
DEFAULT_CONFIDENCE = 0.5


class ClassifierAdapter(ABC):
    """
    All delegated backends implement this interface.
    SuspicionClassifier calls classify() and gets back an AIVerdict or None.
    The caller never knows which backend is running.
    """

    @abstractmethod
    def classify(self, text: str) -> Optional[AIVerdict]:
        """
        Classify a single piece of text. Blocking.
        Returns None on any failure — caller falls back to the heuristic.
        Never raises — catch internally and return None.
        """
        ...

    def build_payload(self, text: str) -> Dict[str, Any]:
        return {'text': text}

    @staticmethod
    def verdict_from_response(data: Dict[str, Any]) -> AIVerdict:
        """
        Map a service response onto AIVerdict. Every field is optional.
        Raises TypeError/ValueError on shapes that cannot be read.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected JSON object, got {type(data).__name__}")

        confidence = data.get('confidence')
        if confidence is None:
            confidence = DEFAULT_CONFIDENCE
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ValueError(f"Non-numeric confidence: {confidence!r}")

        is_suspicious = data.get('isSuspicious', False)
        if is_suspicious is None:
            is_suspicious = False
        if not isinstance(is_suspicious, bool):
            raise ValueError(f"Non-boolean isSuspicious: {is_suspicious!r}")

        reason = data.get('reason') or DEFAULT_REASON

        return AIVerdict(
            is_suspicious = is_suspicious,
            reason        = str(reason),
            confidence    = confidence,
            source        = 'delegated',
        )
