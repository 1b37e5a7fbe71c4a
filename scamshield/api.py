"""
scamshield/api.py
─────────────────────────────────────────────────────────────────────────────
scamshield — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from scamshield.api import ScamShieldAPI
         api = ScamShieldAPI(config_dir=Path("."))
         analysis = asyncio.run(api.analyze("URGENT: verify your account", "input"))

  2. FastAPI HTTP server (selection / input capture clients via fetch()):
         python -m scamshield.api                 # default: port 8766
         python -m scamshield.api --port 9000
         uvicorn scamshield.api:app --port 8766

ENDPOINTS:
  POST   /analyze            — scan + classify + combine one piece of text
  GET    /analysis/last      — most recent analysis in this process
  GET    /history            — stored analyses, newest first
  DELETE /history            — clear history and counters
  GET    /stats              — total scans / scams detected
  GET    /keywords           — keyword categories
  POST   /keywords           — add a custom keyword
  DELETE /keywords/{phrase}  — remove a keyword from every category
  GET    /config             — classifier config (API key masked)
  POST   /config             — configure delegated classification
  POST   /config/mock        — enable / disable mock (heuristic) mode
  GET    /health             — liveness + classifier mode

CORS: localhost-only (127.0.0.1 / ::1). Not exposed to network by default.

PRIVACY NOTE:
  Message text is never logged. It only leaves the device when delegated
  classification is explicitly configured.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from scamshield import __version__
from scamshield.classifier.suspicion import SuspicionClassifier
from scamshield.config import load_config, masked, update_config
from scamshield.detectors.keyword_detector import DEFAULT_CUSTOM_WEIGHT, KeywordScanner
from scamshield.detectors.scam_detector import ScamDetector
from scamshield.history.sqlite_store import HISTORY_CAPACITY, HistoryStore
from scamshield.models.record import Severity
from scamshield.notifier import LogNotifier, NotificationSink

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8766


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class ScamShieldAPI:
    """
    Pure-Python facade over detector, history and config.
    No HTTP layer required — import and call directly.

    Usage:
        api      = ScamShieldAPI(config_dir=Path.home() / ".scamshield")
        analysis = await api.analyze("Send a gift card today", "selection")
        history  = api.get_history(limit=20)
        stats    = api.get_stats()
    """

    def __init__(
        self,
        config_dir: Optional[Path]             = None,
        db_path:    Optional[Path]             = None,
        notifier:   Optional[NotificationSink] = None,
    ):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        config = load_config(self.config_dir)

        db = Path(db_path or config.get("db_path") or "scamshield.db")
        if not db.is_absolute():
            db = self.config_dir / db
        self.db_path = db

        self.scanner    = KeywordScanner()
        self.classifier = SuspicionClassifier(config_dir=self.config_dir)
        self.history    = HistoryStore(self.db_path)
        self.detector   = ScamDetector(
            scanner    = self.scanner,
            classifier = self.classifier,
            history    = self.history,
            notifier   = notifier or LogNotifier(),
        )
        self._replay_keyword_edits(config)

    # ── ANALYSIS ──────────────────────────────────────────────────────────

    async def analyze(self, text: str, source: str = "input") -> Dict[str, Any]:
        analysis = await self.detector.analyze(text, source)
        return analysis.to_dict()

    def get_last_analysis(self) -> Optional[Dict[str, Any]]:
        last = self.detector.get_last_analysis()
        return last.to_dict() if last else None

    # ── HISTORY ───────────────────────────────────────────────────────────

    def get_history(self, limit: int = HISTORY_CAPACITY, offset: int = 0) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.history.list(limit=limit, offset=offset)]

    def clear_history(self) -> None:
        self.history.clear()

    def get_stats(self) -> Dict[str, Any]:
        return self.history.stats()

    # ── KEYWORDS ──────────────────────────────────────────────────────────

    def list_keywords(self) -> Dict[str, Any]:
        return {
            "version":    self.scanner.catalog.version,
            "bySeverity": self.scanner.list_all_keywords(),
            "categories": [c.to_dict() for c in self.scanner.list_categories()],
        }

    def add_keyword(self, keyword: str, severity: str, weight: int = DEFAULT_CUSTOM_WEIGHT) -> bool:
        """Add to the live catalog and record it in the config file."""
        severity = Severity.parse(severity)
        added    = self.scanner.add_custom_keyword(keyword, severity, weight)
        if added:
            phrase = keyword.strip().lower()
            custom, removed = self._keyword_edits(phrase)
            custom.append({"keyword": phrase, "severity": severity.value, "weight": int(weight)})
            update_config({"custom_keywords": custom, "removed_keywords": removed}, self.config_dir)
        return added

    def remove_keyword(self, keyword: str) -> bool:
        """Remove from the live catalog and record it in the config file."""
        removed_now = self.scanner.remove_keyword(keyword)
        if removed_now:
            phrase = keyword.strip().lower()
            custom, removed = self._keyword_edits(phrase)
            removed.append(phrase)
            update_config({"custom_keywords": custom, "removed_keywords": removed}, self.config_dir)
        return removed_now

    def _keyword_edits(self, without: str):
        """Persisted (custom, removed) keyword lists, minus any entry for `without`."""
        config  = load_config(self.config_dir)
        custom  = [
            e for e in config.get("custom_keywords") or []
            if isinstance(e, dict) and e.get("keyword") != without
        ]
        removed = [k for k in config.get("removed_keywords") or [] if k != without]
        return custom, removed

    def _replay_keyword_edits(self, config: Dict[str, Any]) -> None:
        """Re-apply keyword edits persisted by earlier processes. Removals first."""
        for phrase in config.get("removed_keywords") or []:
            self.scanner.remove_keyword(phrase)
        for entry in config.get("custom_keywords") or []:
            try:
                self.scanner.add_custom_keyword(
                    entry["keyword"],
                    Severity.parse(entry["severity"]),
                    entry.get("weight", DEFAULT_CUSTOM_WEIGHT),
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed custom keyword entry: {e}")

    # ── CONFIG ────────────────────────────────────────────────────────────

    async def get_config(self) -> Dict[str, Any]:
        await self.classifier.load()
        config = load_config(self.config_dir)
        return {"config": masked(config), "mode": self.classifier.mode}

    def configure(self, endpoint: str, api_key: str) -> None:
        self.classifier.configure_api(endpoint, api_key)

    def set_mock_mode(self, enabled: bool) -> None:
        if enabled:
            self.classifier.enable_mock_mode()
        else:
            self.classifier.disable_mock_mode()


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class AnalyzeRequest(BaseModel):
    text:   str = Field(..., min_length=1)
    source: Literal["selection", "input"] = "input"


class KeywordRequest(BaseModel):
    keyword:  str = Field(..., min_length=1)
    severity: Literal["low", "medium", "high", "critical"]
    weight:   int = Field(DEFAULT_CUSTOM_WEIGHT, ge=1, le=100)


class ConfigRequest(BaseModel):
    endpoint: str = Field(..., min_length=1)
    api_key:  str = ""


class MockModeRequest(BaseModel):
    enabled: bool


def _build_app(
    config_dir: Optional[Path] = None,
    api:        Optional[ScamShieldAPI] = None,
) -> FastAPI:
    """
    Build and return the FastAPI application instance.
    Pass `api` to share one facade (tests, embedding); otherwise one is
    created from config_dir.
    """
    _api = api or ScamShieldAPI(config_dir=config_dir)

    _app = FastAPI(
        title       = "scamshield API",
        description = "Scam / social-engineering message detector — local API",
        version     = __version__,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = [
            "http://localhost",
            f"http://localhost:{DEFAULT_PORT}",
            "http://127.0.0.1",
            f"http://127.0.0.1:{DEFAULT_PORT}",
            "null",   # file:// origin
        ],
        allow_methods     = ["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers     = ["Content-Type"],
        allow_credentials = False,
    )

    # ── ENDPOINTS ───────────────────────────────────────────────────────

    @_app.post("/analyze", summary="Analyze one piece of text")
    async def analyze(req: AnalyzeRequest):
        """
        Keyword scan + suspicion classifier, fused into one verdict.
        The result is also stored in history and, when suspicious,
        sent to the notification sink.
        """
        try:
            return {"success": True, "analysis": await _api.analyze(req.text, req.source)}
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except Exception as exc:
            logger.error(f"Analyze endpoint error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Analysis failed: {exc}")

    @_app.get("/analysis/last", summary="Most recent analysis")
    def last_analysis():
        return {"analysis": _api.get_last_analysis()}

    @_app.get("/history", summary="Stored analyses, newest first")
    def get_history(
        limit:  int = Query(HISTORY_CAPACITY, ge=1, le=HISTORY_CAPACITY),
        offset: int = Query(0, ge=0),
    ):
        try:
            data = _api.get_history(limit=limit, offset=offset)
            return {"count": len(data), "history": data}
        except Exception as exc:
            logger.error(f"History endpoint error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(exc))

    @_app.delete("/history", summary="Clear history and counters")
    def clear_history():
        try:
            _api.clear_history()
            return {"status": "ok"}
        except Exception as exc:
            logger.error(f"Clear history error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(exc))

    @_app.get("/stats", summary="Scan counters")
    def get_stats():
        try:
            return _api.get_stats()
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc))

    @_app.get("/keywords", summary="Keyword categories")
    def list_keywords():
        return _api.list_keywords()

    @_app.post("/keywords", summary="Add a custom keyword")
    def add_keyword(req: KeywordRequest):
        try:
            added = _api.add_keyword(req.keyword, req.severity, req.weight)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"added": added, "version": _api.scanner.catalog.version}

    @_app.delete("/keywords/{phrase}", summary="Remove a keyword")
    def remove_keyword(phrase: str):
        if not _api.remove_keyword(phrase):
            raise HTTPException(status_code=404, detail=f"Keyword not found: {phrase}")
        return {"removed": True, "version": _api.scanner.catalog.version}

    @_app.get("/config", summary="Classifier config (API key masked)")
    async def get_config():
        try:
            return await _api.get_config()
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc))

    @_app.post("/config", summary="Configure delegated classification")
    def save_config_endpoint(req: ConfigRequest):
        try:
            _api.configure(req.endpoint, req.api_key)
            return {"status": "ok", "mode": _api.classifier.mode}
        except Exception as exc:
            logger.error(f"Config endpoint error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(exc))

    @_app.post("/config/mock", summary="Enable / disable mock mode")
    def set_mock_mode(req: MockModeRequest):
        try:
            _api.set_mock_mode(req.enabled)
            return {"status": "ok", "mode": _api.classifier.mode}
        except Exception as exc:
            logger.error(f"Mock mode endpoint error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(exc))

    @_app.get("/health", summary="Health check")
    def health():
        return {
            "status":  "ok",
            "mode":    _api.classifier.mode,
            "ready":   _api.classifier.is_ready,
            "db_path": str(_api.db_path),
            "version": __version__,
        }

    return _app


# Module-level app instance — used by uvicorn scamshield.api:app
app = _build_app()


def serve(config_dir: Optional[Path] = None, host: str = "127.0.0.1", port: int = DEFAULT_PORT) -> None:
    import uvicorn

    server_app = _build_app(config_dir=config_dir)
    print(f"""
+--------------------------------------------------+
|   scamshield API Server v{__version__:<24}|
+--------------------------------------------------+
|  Local:    http://{host}:{port}
|  Docs:     http://{host}:{port}/docs
|  Health:   http://{host}:{port}/health
+--------------------------------------------------+
""")
    uvicorn.run(server_app, host=host, port=port, log_level="info")


# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT — python -m scamshield.api
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        prog        = "scamshield.api",
        description = "scamshield API Server — local scam detection service",
    )
    parser.add_argument("--port",       type=int,  default=DEFAULT_PORT,
                        help=f"Port to bind (default: {DEFAULT_PORT})")
    parser.add_argument("--config-dir", type=Path, default=Path.cwd(),
                        help="Directory holding scamshield_config.json (default: cwd)")
    parser.add_argument("--host",       type=str,  default="127.0.0.1",
                        help="Host to bind — DO NOT change to 0.0.0.0 on shared networks")
    args = parser.parse_args()

    logging.basicConfig(
        level   = logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )
    serve(config_dir=args.config_dir, host=args.host, port=args.port)
