"""
scamshield/classifier/remote_adapter.py
Delegated classification over HTTP. Sends the text to a configured
scoring service and maps its JSON answer onto AIVerdict.

REQUEST:
  POST <endpoint>
  Authorization: Bearer <api key>
  {"text": "..."}

RESPONSE (all fields optional):
  {"isSuspicious": bool, "reason": str, "confidence": number}

PRIVACY: message text and the API key are never written to logs.
"""

import json
import logging
import urllib.error
import urllib.request
from typing import Optional

from scamshield.classifier.base import ClassifierAdapter
from scamshield.models.record import AIVerdict

logger = logging.getLogger(__name__)


class RemoteClassifierAdapter(ClassifierAdapter):

    def __init__(
        self,
        endpoint:    str,
        api_key:     str = '',
        timeout_sec: float = 30,
    ):
        self.endpoint    = endpoint
        self.api_key     = api_key
        self.timeout_sec = timeout_sec

    def classify(self, text: str) -> Optional[AIVerdict]:
        payload = json.dumps(self.build_payload(text)).encode('utf-8')

        try:
            req = urllib.request.Request(
                self.endpoint,
                data    = payload,
                headers = {
                    'Content-Type':  'application/json',
                    'Authorization': f'Bearer {self.api_key}',
                },
                method  = 'POST',
            )
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                raw  = resp.read().decode('utf-8')
                data = json.loads(raw)

            return self.verdict_from_response(data)

        except urllib.error.HTTPError as e:
            logger.warning(f"Classification service returned HTTP {e.code}")
            return None
        except urllib.error.URLError as e:
            logger.warning(f"Classification service unreachable: {e.reason}")
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"Classification response is not valid JSON: {e}")
            return None
        except (TypeError, ValueError) as e:
            logger.warning(f"Classification response has unexpected shape: {e}")
            return None
        except Exception as e:
            logger.warning(f"Classification request failed: {e}")
            return None
