"""
scamshield/models/record.py
Shared dataclass schema. Scanner, classifier, combiner, history store and
API all use these types. Do not add detection logic here — data only.

Wire shapes (to_dict) use camelCase keys so history rows and HTTP
responses match the analysis request/response format of the UI.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class Severity(str, Enum):
    LOW      = 'low'
    MEDIUM   = 'medium'
    HIGH     = 'high'
    CRITICAL = 'critical'

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def from_rank(cls, rank: int) -> 'Severity':
        for sev, r in _SEVERITY_RANK.items():
            if r == rank:
                return sev
        return cls.LOW

    @classmethod
    def parse(cls, value: Any) -> 'Severity':
        """Accepts a Severity or a case-insensitive name. Raises ValueError."""
        if isinstance(value, Severity):
            return value
        return cls(str(value).strip().lower())


_SEVERITY_RANK = {
    Severity.LOW:      1,
    Severity.MEDIUM:   2,
    Severity.HIGH:     3,
    Severity.CRITICAL: 4,
}

# Per-match points, multiplied by the category weight
SEVERITY_SCORES: Dict[Severity, int] = {
    Severity.LOW:      1,
    Severity.MEDIUM:   3,
    Severity.HIGH:     6,
    Severity.CRITICAL: 10,
}

VERDICT_SOURCES = ('heuristic', 'delegated', 'fallback')
REQUEST_SOURCES = ('selection', 'input')


@dataclass(frozen=True)
class KeywordCategory:
    """Phrases sharing one severity and one weight."""
    name:     str
    severity: Severity
    weight:   int
    keywords: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name':     self.name,
            'severity': self.severity.value,
            'weight':   self.weight,
            'keywords': list(self.keywords),
        }


@dataclass(frozen=True)
class MatchDetail:
    """One occurrence of a phrase in the scanned text."""
    keyword:  str
    severity: Severity
    position: int          # char offset in the original text
    context:  str          # ±30 chars, '...' where clipped
    category: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'keyword':  self.keyword,
            'severity': self.severity.value,
            'position': self.position,
            'context':  self.context,
            'category': self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchDetail':
        return cls(
            keyword  = data['keyword'],
            severity = Severity.parse(data['severity']),
            position = int(data['position']),
            context  = data.get('context', ''),
            category = data.get('category', ''),
        )


@dataclass(frozen=True)
class DetectionResult:
    """Output of one keyword scan."""
    flagged:         bool
    score:           int
    matches:         List[str]          = field(default_factory=list)
    severity:        Severity           = Severity.LOW
    details:         List[MatchDetail]  = field(default_factory=list)
    catalog_version: int                = 0

    @property
    def matched_categories(self) -> List[str]:
        seen: List[str] = []
        for d in self.details:
            if d.category and d.category not in seen:
                seen.append(d.category)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flagged':        self.flagged,
            'score':          self.score,
            'matches':        list(self.matches),
            'severity':       self.severity.value,
            'details':        [d.to_dict() for d in self.details],
            'catalogVersion': self.catalog_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DetectionResult':
        return cls(
            flagged         = bool(data.get('flagged', False)),
            score           = int(data.get('score', 0)),
            matches         = list(data.get('matches', [])),
            severity        = Severity.parse(data.get('severity', 'low')),
            details         = [MatchDetail.from_dict(d) for d in data.get('details', [])],
            catalog_version = int(data.get('catalogVersion', 0)),
        )


@dataclass(frozen=True)
class AIVerdict:
    """
    Suspicion classifier output.
    source: heuristic (mock mode), delegated (remote service answered),
            fallback (remote failed, heuristic used instead).
    """
    is_suspicious: bool
    reason:        str
    confidence:    float
    source:        str = 'heuristic'

    def __post_init__(self):
        # Clamp regardless of where the number came from
        try:
            conf = float(self.confidence)
        except (TypeError, ValueError):
            conf = 0.0
        if conf != conf:    # NaN
            conf = 0.0
        object.__setattr__(self, 'confidence', min(max(conf, 0.0), 1.0))
        if self.source not in VERDICT_SOURCES:
            raise ValueError(f"Unknown verdict source: {self.source!r}")

    @property
    def degraded(self) -> bool:
        return self.source == 'fallback'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isSuspicious': self.is_suspicious,
            'reason':       self.reason,
            'confidence':   self.confidence,
            'source':       self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AIVerdict':
        return cls(
            is_suspicious = bool(data.get('isSuspicious', False)),
            reason        = str(data.get('reason', '')),
            confidence    = data.get('confidence', 0.0),
            source        = data.get('source', 'heuristic'),
        )


@dataclass(frozen=True)
class CombinedAnalysis:
    """Fused keyword + classifier verdict for one piece of text."""
    keyword_detection: DetectionResult
    ai_detection:      AIVerdict
    final_score:       float            # 0..1
    overall_severity:  Severity
    is_suspicious:     bool
    recommendation:    str
    timestamp:         int              # epoch ms
    message_text:      str
    source:            str = 'input'    # selection / input

    @property
    def risk_percent(self) -> int:
        return int(round(self.final_score * 100))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isSuspicious':     self.is_suspicious,
            'overallSeverity':  self.overall_severity.value,
            'keywordDetection': self.keyword_detection.to_dict(),
            'aiDetection':      self.ai_detection.to_dict(),
            'finalScore':       self.final_score,
            'riskPercent':      self.risk_percent,
            'recommendation':   self.recommendation,
            'timestamp':        self.timestamp,
            'messageText':      self.message_text,
            'source':           self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CombinedAnalysis':
        return cls(**_combined_kwargs(data))


@dataclass(frozen=True)
class StoredAnalysis(CombinedAnalysis):
    """A CombinedAnalysis persisted in history."""
    id: str = ''

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['id'] = self.id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredAnalysis':
        return cls(id=data['id'], **_combined_kwargs(data))

    @classmethod
    def from_analysis(cls, analysis: CombinedAnalysis, entry_id: str) -> 'StoredAnalysis':
        return cls(
            keyword_detection = analysis.keyword_detection,
            ai_detection      = analysis.ai_detection,
            final_score       = analysis.final_score,
            overall_severity  = analysis.overall_severity,
            is_suspicious     = analysis.is_suspicious,
            recommendation    = analysis.recommendation,
            timestamp         = analysis.timestamp,
            message_text      = analysis.message_text,
            source            = analysis.source,
            id                = entry_id,
        )


@dataclass(frozen=True)
class Notification:
    """What the OS-level notification integration receives."""
    severity: Severity
    title:    str
    message:  str
    urgent:   bool

    @property
    def priority(self) -> int:
        return 2 if self.severity is Severity.CRITICAL else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'severity': self.severity.value,
            'title':    self.title,
            'message':  self.message,
            'urgent':   self.urgent,
            'priority': self.priority,
        }


def _combined_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
    return dict(
        keyword_detection = DetectionResult.from_dict(data.get('keywordDetection', {})),
        ai_detection      = AIVerdict.from_dict(data.get('aiDetection', {})),
        final_score       = float(data.get('finalScore', 0.0)),
        overall_severity  = Severity.parse(data.get('overallSeverity', 'low')),
        is_suspicious     = bool(data.get('isSuspicious', False)),
        recommendation    = data.get('recommendation', ''),
        timestamp         = int(data.get('timestamp', 0)),
        message_text      = data.get('messageText', ''),
        source            = data.get('source', 'input'),
    )
