"""
scamshield/classifier/suspicion.py
Suspicion classifier front door. Picks heuristic (mock) or delegated mode
from persisted config and falls back to the heuristic when the remote
service fails. Failures are logged, never raised to the caller; the
verdict's `source` says which path produced it.

Config is loaded once, asynchronously. classify() awaits that load, so
a request can never run against defaults while the file is still being
read.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from scamshield.classifier.base import ClassifierAdapter
from scamshield.classifier.heuristic import evaluate
from scamshield.classifier.remote_adapter import RemoteClassifierAdapter
from scamshield.config import DEFAULT_CONFIG, load_config, update_config
from scamshield.models.record import AIVerdict

logger = logging.getLogger(__name__)


class SuspicionClassifier:

    def __init__(
        self,
        config_dir: Optional[Path]              = None,
        adapter:    Optional[ClassifierAdapter] = None,
    ):
        """
        config_dir: directory holding scamshield_config.json (default: cwd)
        adapter:    delegated backend override; built from config when None
        """
        self.config_dir   = config_dir
        self._adapter     = adapter
        self.api_endpoint = DEFAULT_CONFIG['ai_endpoint']
        self.api_key      = DEFAULT_CONFIG['ai_key']
        self.mock_mode    = DEFAULT_CONFIG['mock_mode']
        self.timeout_sec  = DEFAULT_CONFIG['request_timeout_sec']
        self._loaded      = False
        self._load_lock   = asyncio.Lock()

    # ── CONFIG ───────────────────────────────────────────────
    @property
    def is_ready(self) -> bool:
        return self._loaded

    @property
    def mode(self) -> str:
        return 'mock' if self._use_heuristic() else 'delegated'

    async def load(self) -> None:
        """Load persisted config once. Safe to await from many tasks."""
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            config = await asyncio.to_thread(load_config, self.config_dir)
            self._apply(config)
            self._loaded = True
            logger.info(f"Classifier config loaded — mode={self.mode}")

    def configure_api(self, endpoint: str, api_key: str) -> None:
        """Switch to delegated mode against endpoint and persist."""
        self._persist({
            'ai_endpoint': endpoint,
            'ai_key':      api_key,
            'mock_mode':   False,
        })

    def enable_mock_mode(self) -> None:
        self._persist({'mock_mode': True})

    def disable_mock_mode(self) -> None:
        self._persist({'mock_mode': False})

    def _persist(self, changes: Dict[str, Any]) -> None:
        config = update_config(changes, self.config_dir)
        self._apply(config)
        self._loaded = True
        logger.info(f"Classifier config updated — mode={self.mode}")

    def _apply(self, config: Dict[str, Any]) -> None:
        self.api_endpoint = config.get('ai_endpoint') or ''
        self.api_key      = config.get('ai_key') or ''
        self.mock_mode    = config.get('mock_mode') is not False
        self.timeout_sec  = config.get('request_timeout_sec') or DEFAULT_CONFIG['request_timeout_sec']

    def _use_heuristic(self) -> bool:
        return self.mock_mode or not self.api_endpoint

    def _backend(self) -> ClassifierAdapter:
        if self._adapter is not None:
            return self._adapter
        return RemoteClassifierAdapter(
            endpoint    = self.api_endpoint,
            api_key     = self.api_key,
            timeout_sec = self.timeout_sec,
        )

    # ── CLASSIFY ─────────────────────────────────────────────
    async def classify(self, text: str) -> AIVerdict:
        await self.load()

        if self._use_heuristic():
            return evaluate(text)

        try:
            verdict = await asyncio.to_thread(self._backend().classify, text)
        except Exception as e:
            logger.error(f"Classifier backend raised: {e}")
            verdict = None

        if verdict is None:
            logger.warning("Delegated classification failed — using heuristic fallback.")
            return evaluate(text, source='fallback')

        return verdict
