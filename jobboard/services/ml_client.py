"""
ML Service Client

Resume parsing and job matching live in a separate HTTP service:
- POST {ML_API_URL}/parse_resume  multipart field "resume" -> {"skills": [...], ...}
- POST {ML_API_URL}/match_jobs    {"skills", "jobs": [{_id, title, requiredSkills}]}

Every call carries an explicit timeout. Unreachable service, timeout,
non-2xx status and malformed payloads all surface as DependencyError.
"""

import logging
from typing import Any, Dict, List

import httpx

from jobboard.core.config import get_settings
from jobboard.core.errors import DependencyError

settings = get_settings()
logger = logging.getLogger(__name__)

PARSE_SERVICE = "Resume service"
MATCH_SERVICE = "Job matching service"


class MLClient:

    def __init__(self, base_url: str = None, transport: httpx.BaseTransport = None):
        self.base_url = (base_url or settings.ml_api_url).rstrip("/")
        self.transport = transport

    def _post(self, path: str, timeout: float, service: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=timeout, transport=self.transport) as client:
                resp = client.post(url, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.TimeoutException as exc:
            logger.warning("ML service timed out on %s: %s", path, exc)
            raise DependencyError(f"{service} timed out")
        except httpx.HTTPStatusError as exc:
            logger.warning("ML service returned %s on %s", exc.response.status_code, path)
            raise DependencyError(f"{service} returned an error")
        except httpx.HTTPError as exc:
            logger.warning("ML service unreachable on %s: %s", path, exc)
            raise DependencyError(f"{service} unavailable")
        except ValueError:
            logger.warning("ML service sent a non-JSON body on %s", path)
            raise DependencyError(f"{service} returned an invalid response")

    def parse_resume(self, file_path: str, filename: str) -> Dict[str, Any]:
        """Forward the stored file; the reply must carry a skills list."""
        with open(file_path, "rb") as fh:
            data = self._post(
                "/parse_resume",
                settings.ml_parse_timeout_seconds,
                PARSE_SERVICE,
                files={"resume": (filename, fh)},
            )

        if not isinstance(data, dict) or not isinstance(data.get("skills"), list):
            logger.warning("ML parse response missing skills list")
            raise DependencyError(f"{PARSE_SERVICE} returned an invalid response")
        return data

    def match_jobs(self, skills: List[str], jobs: List[Dict[str, Any]]) -> Any:
        """Ranked matches, returned exactly as the service sent them."""
        return self._post(
            "/match_jobs",
            settings.ml_match_timeout_seconds,
            MATCH_SERVICE,
            json={"skills": skills, "jobs": jobs},
        )


# Singleton instance
_ml_client: MLClient = None


def get_ml_client() -> MLClient:
    """Get or create ML client (singleton pattern)"""
    global _ml_client
    if _ml_client is None:
        _ml_client = MLClient()
    return _ml_client
