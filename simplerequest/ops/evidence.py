import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from simplerequest.interfaces import IEvidenceCollector

logger = logging.getLogger(__name__)

BODY_SAMPLE_BYTES = 2048
_SECRET_HEADER_MARKERS = ("auth", "key", "cookie")


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    return {
        name: value
        for name, value in (headers or {}).items()
        if not any(marker in name.lower() for marker in _SECRET_HEADER_MARKERS)
    }


class EvidenceCollector(IEvidenceCollector):
    """
    Appends one JSONL line per failed request and keeps a truncated sample of
    the response body next to it.
    """

    def __init__(self, run_id: str, logs_dir: str = "logs"):
        self.run_id = run_id
        self.logs_dir = Path(logs_dir)
        self.requests_log_path = self.logs_dir / "failed_requests.jsonl"
        self.responses_dir = self.logs_dir / "failed_responses"

        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.responses_dir.mkdir(parents=True, exist_ok=True)

    def log_failed_request(
        self,
        method: str,
        url: str,
        status_code: int,
        error_type: str,
        headers: Dict[str, str],
        context: Dict[str, Any],
        response_body: Optional[bytes] = None,
    ):
        entry = {
            "timestamp": datetime.now().isoformat(),
            "run_id": self.run_id,
            "method": method,
            "full_url": url,
            "status_code": status_code,
            "error_type": error_type,
            "headers": redact_headers(headers),
            "context": context,
        }

        if response_body:
            sample_path = self._write_body_sample(response_body)
            if sample_path is not None:
                entry["body_sample_path"] = str(sample_path)

        try:
            with open(self.requests_log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            logger.critical("Failed to write evidence log %s: %s", self.requests_log_path, e)

    def _write_body_sample(self, response_body: bytes) -> Optional[Path]:
        body_hash = hashlib.sha256(response_body).hexdigest()[:16]
        sample_path = self.responses_dir / f"{body_hash}.txt"
        try:
            with open(sample_path, "wb") as f:
                f.write(response_body[:BODY_SAMPLE_BYTES])
                if len(response_body) > BODY_SAMPLE_BYTES:
                    f.write(b"\n...[TRUNCATED]")
        except OSError as e:
            logger.warning("Failed to save response sample %s: %s", sample_path, e)
            return None
        return sample_path
