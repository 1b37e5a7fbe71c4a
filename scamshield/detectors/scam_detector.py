"""
scamshield/detectors/scam_detector.py
Analysis orchestrator. One request = keyword scan + suspicion classifier
over the same text, fused by the result combiner, then handed to the
notification sink and the history store.

Keyword scan and combine are synchronous; the classifier is the only
await point. Sink/store failures are logged and dropped — the caller
still gets its analysis.
"""

import asyncio
import logging
from typing import Optional

from scamshield.classifier.suspicion import SuspicionClassifier
from scamshield.detectors.keyword_detector import KeywordScanner
from scamshield.detectors.result_combiner import combine
from scamshield.history.sqlite_store import HistoryStore
from scamshield.models.record import REQUEST_SOURCES, CombinedAnalysis
from scamshield.notifier import LogNotifier, NotificationSink, build_notification

logger = logging.getLogger(__name__)


class ScamDetector:

    def __init__(
        self,
        scanner:    Optional[KeywordScanner]      = None,
        classifier: Optional[SuspicionClassifier] = None,
        history:    Optional[HistoryStore]        = None,
        notifier:   Optional[NotificationSink]    = None,
    ):
        self.scanner    = scanner    or KeywordScanner()
        self.classifier = classifier or SuspicionClassifier()
        self.history    = history
        self.notifier   = notifier   or LogNotifier()
        self._last: Optional[CombinedAnalysis] = None

    def get_last_analysis(self) -> Optional[CombinedAnalysis]:
        return self._last

    async def analyze(self, text: str, source: str = 'input') -> CombinedAnalysis:
        """
        Full pipeline for one piece of text.
        Raises ValueError on an empty text or unknown source.
        """
        if source not in REQUEST_SOURCES:
            raise ValueError(f"source must be one of {REQUEST_SOURCES}, got {source!r}")
        if not (text or '').strip():
            raise ValueError("text must not be empty")

        detection = self.scanner.scan(text)
        verdict   = await self.classifier.classify(text)
        analysis  = combine(detection, verdict, text, source=source)

        self._last = analysis
        logger.info(
            f"Analysis complete: chars={len(text)} source={source} "
            f"severity={analysis.overall_severity.value} "
            f"suspicious={analysis.is_suspicious} score={analysis.final_score:.2f} "
            f"classifier={verdict.source}"
        )

        self._notify(analysis)
        await self._store(analysis)
        return analysis

    # ── SIDE EFFECTS ─────────────────────────────────────────
    def _notify(self, analysis: CombinedAnalysis) -> None:
        notification = build_notification(analysis)
        if notification is None:
            return
        try:
            self.notifier.send(notification)
        except Exception as e:
            logger.error(f"Notification sink failed: {e}", exc_info=True)

    async def _store(self, analysis: CombinedAnalysis) -> None:
        if self.history is None:
            return
        try:
            await asyncio.to_thread(self.history.record, analysis)
        except Exception as e:
            logger.error(f"History store failed: {e}", exc_info=True)
