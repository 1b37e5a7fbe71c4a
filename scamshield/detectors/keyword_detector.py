"""
scamshield/detectors/keyword_detector.py
Keyword scan — pure Python, zero dependencies, fully offline.
Scans text against categorized phrase lists and returns a DetectionResult.
Runs standalone (no classifier required) and never raises.
"""

import logging
import re
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from scamshield.models.record import (
    DetectionResult,
    KeywordCategory,
    MatchDetail,
    SEVERITY_SCORES,
    Severity,
)

logger = logging.getLogger(__name__)

CONTEXT_CHARS         = 30
DEFAULT_CUSTOM_WEIGHT = 5

# ── KEYWORD CATEGORIES ───────────────────────────────────────
# Extend freely. Names are used by the recommendation builder.

DEFAULT_CATEGORIES: List[KeywordCategory] = [
    KeywordCategory('account_security', Severity.CRITICAL, 10, (
        'verify account', 'verify your account', 'account suspended',
        'account locked', 'confirm identity', 'update payment',
        'payment failed', 'billing problem', 'unusual activity',
        'suspicious activity', 'unauthorized access', 'security alert',
        'verify payment', 'confirm payment',
    )),
    KeywordCategory('urgency', Severity.HIGH, 8, (
        'urgent', 'immediate action', 'act now', 'limited time',
        'expires today', 'verify now', 'click here now',
        'respond immediately', 'final notice', 'last chance',
        'time sensitive', 'action required',
    )),
    KeywordCategory('payment_method', Severity.CRITICAL, 10, (
        'gift card', 'gift cards', 'iTunes card', 'Google Play card',
        'Amazon card', 'prepaid card', 'wire transfer', 'send money',
        'western union', 'moneygram', 'bitcoin', 'cryptocurrency',
        'crypto wallet',
    )),
    KeywordCategory('sensitive_data', Severity.CRITICAL, 10, (
        'password', 'social security', 'ssn', 'social security number',
        'bank account', 'routing number', 'credit card', 'cvv',
        'pin number', 'bank login', 'online banking', 'account number',
        'tax id',
    )),
    KeywordCategory('authority_impersonation', Severity.HIGH, 9, (
        'IRS', 'internal revenue service', 'tax refund', 'tax return',
        'tax investigation', 'federal agent', 'government official',
        'department of justice', 'FBI', 'police department',
    )),
    KeywordCategory('brand_account', Severity.HIGH, 8, (
        'Apple ID', 'iCloud account', 'Microsoft account', 'Google account',
        'Amazon account', 'PayPal account', 'Netflix account',
        'Facebook account',
    )),
    KeywordCategory('call_to_action', Severity.MEDIUM, 6, (
        'click this link', 'click here', 'download attachment',
        'open attachment', 'verify here', 'login here', 'reset password',
        'change password', 'update information', 'confirm details',
    )),
    KeywordCategory('prize_lure', Severity.MEDIUM, 7, (
        'congratulations', "you've won", 'prize', 'lottery', 'winner',
        'claim your', 'free gift', 'bonus', 'reward', 'compensation',
    )),
    KeywordCategory('refund_lure', Severity.MEDIUM, 6, (
        'refund', 'reimbursement', 'overpayment', 'owed money',
        'unclaimed funds', 'pending payment', 'payment processing',
    )),
    KeywordCategory('account_status', Severity.MEDIUM, 5, (
        'suspended', 'deactivated', 'disabled', 'restricted', 'blocked',
        'terminated', 'cancelled', 'expired', 'invalid',
    )),
    KeywordCategory('verification', Severity.LOW, 3, (
        'confirm', 'verify', 'validate', 'authenticate', 'review',
        'update', 'renew', 'reactivate',
    )),
]


class KeywordCatalog:
    """
    Owned, versioned set of keyword categories.
    Mutations are serialized by a lock and bump `version`; scans work on
    an immutable snapshot so an admin edit never changes a scan mid-flight.
    """

    def __init__(self, categories: Optional[Iterable[KeywordCategory]] = None):
        source = DEFAULT_CATEGORIES if categories is None else categories
        self._categories: List[KeywordCategory] = list(source)
        self._lock    = threading.RLock()
        self._version = 1

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> Tuple[int, Tuple[KeywordCategory, ...]]:
        with self._lock:
            return self._version, tuple(self._categories)

    def add(self, phrase: str, severity: Severity, weight: int = DEFAULT_CUSTOM_WEIGHT) -> bool:
        """Append phrase to the first category of this severity (created if missing)."""
        normalized = phrase.strip().lower()
        if not normalized:
            raise ValueError("Keyword must not be empty")
        severity = Severity.parse(severity)

        with self._lock:
            idx = next(
                (i for i, c in enumerate(self._categories) if c.severity is severity),
                None,
            )
            if idx is None:
                self._categories.append(KeywordCategory(
                    name     = f'custom_{severity.value}',
                    severity = severity,
                    weight   = int(weight),
                    keywords = (normalized,),
                ))
            else:
                category = self._categories[idx]
                if any(k.lower() == normalized for k in category.keywords):
                    return False
                self._categories[idx] = KeywordCategory(
                    name     = category.name,
                    severity = category.severity,
                    weight   = category.weight,
                    keywords = category.keywords + (normalized,),
                )
            self._version += 1

        logger.info(f"Keyword added to {severity.value} tier (catalog v{self._version})")
        return True

    def remove(self, phrase: str) -> bool:
        """Remove phrase from every category. Case-insensitive, whole phrase only."""
        normalized = phrase.strip().lower()
        removed = False

        with self._lock:
            for i, category in enumerate(self._categories):
                kept = tuple(k for k in category.keywords if k.lower() != normalized)
                if len(kept) != len(category.keywords):
                    self._categories[i] = KeywordCategory(
                        name     = category.name,
                        severity = category.severity,
                        weight   = category.weight,
                        keywords = kept,
                    )
                    removed = True
            if removed:
                self._version += 1

        if removed:
            logger.info(f"Keyword removed (catalog v{self._version})")
        return removed

    def keywords_by_severity(self) -> Dict[str, List[str]]:
        result: Dict[str, List[str]] = {s.value: [] for s in Severity}
        _, categories = self.snapshot()
        for category in categories:
            result[category.severity.value].extend(category.keywords)
        return result


class KeywordScanner:

    def __init__(self, catalog: Optional[KeywordCatalog] = None):
        self.catalog = catalog or KeywordCatalog()

    # ── SCAN ─────────────────────────────────────────────────
    def scan(self, text: str) -> DetectionResult:
        """
        Scan one piece of text. Matching is case-insensitive on whole-word
        boundaries, but offsets and context come from the original text.
        """
        text = text or ''
        version, categories = self.catalog.snapshot()

        details:     List[MatchDetail] = []
        matched:     List[str]         = []
        total_score: int               = 0

        for category in categories:
            points = SEVERITY_SCORES[category.severity] * category.weight
            for keyword in category.keywords:
                for m in _keyword_pattern(keyword).finditer(text):
                    details.append(MatchDetail(
                        keyword  = keyword,
                        severity = category.severity,
                        position = m.start(),
                        context  = extract_context(text, m.start(), len(m.group(0))),
                        category = category.name,
                    ))
                    if keyword not in matched:
                        matched.append(keyword)
                    total_score += points

        severity = overall_severity(details)
        logger.debug(
            f"Scan: {len(details)} match(es), {len(matched)} distinct, "
            f"score={total_score}, severity={severity.value}"
        )

        return DetectionResult(
            flagged         = bool(details),
            score           = total_score,
            matches         = matched,
            severity        = severity,
            details         = details,
            catalog_version = version,
        )

    # ── ADMIN ────────────────────────────────────────────────
    def add_custom_keyword(
        self,
        keyword:  str,
        severity: Severity,
        weight:   int = DEFAULT_CUSTOM_WEIGHT,
    ) -> bool:
        return self.catalog.add(keyword, severity, weight)

    def remove_keyword(self, keyword: str) -> bool:
        return self.catalog.remove(keyword)

    def list_all_keywords(self) -> Dict[str, List[str]]:
        return self.catalog.keywords_by_severity()

    def list_categories(self) -> List[KeywordCategory]:
        _, categories = self.catalog.snapshot()
        return list(categories)


def extract_context(text: str, position: int, length: int, window: int = CONTEXT_CHARS) -> str:
    start   = max(0, position - window)
    end     = min(len(text), position + length + window)
    context = text[start:end]
    if start > 0:
        context = '...' + context
    if end < len(text):
        context = context + '...'
    return context


def overall_severity(details: List[MatchDetail]) -> Severity:
    """
    Escalating policy, not a plain max: two criticals, or a critical
    together with a high, make the whole text critical.
    """
    if not details:
        return Severity.LOW

    critical = sum(1 for d in details if d.severity is Severity.CRITICAL)
    high     = sum(1 for d in details if d.severity is Severity.HIGH)

    if critical >= 2 or (critical >= 1 and high >= 1):
        return Severity.CRITICAL

    return Severity.from_rank(max(d.severity.rank for d in details))


_PATTERN_CACHE: Dict[str, 're.Pattern[str]'] = {}


def _keyword_pattern(keyword: str) -> 're.Pattern[str]':
    pattern = _PATTERN_CACHE.get(keyword)
    if pattern is None:
        pattern = re.compile(r'(?<!\w)' + re.escape(keyword) + r'(?!\w)', re.IGNORECASE)
        _PATTERN_CACHE[keyword] = pattern
    return pattern
