"""
scamshield/classifier — suspicion verdicts for a piece of text.

Heuristic rules by default; a remote scoring service when configured,
with silent fallback to the heuristic when it fails.
"""

from scamshield.classifier.heuristic import evaluate
from scamshield.classifier.suspicion import SuspicionClassifier

__all__ = [
    "SuspicionClassifier",
    "evaluate",
]
