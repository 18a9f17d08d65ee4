from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class IHttpClient(ABC):
    """A transport handle that lives for exactly one request."""

    @abstractmethod
    def request(self, method: str, url: str, **kwargs) -> Any:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class IEvidenceCollector(ABC):
    @abstractmethod
    def log_failed_request(self, method: str, url: str, status_code: int, error_type: str, headers: Dict, context: Dict, response_body: Optional[bytes] = None):
        pass
