from dataclasses import dataclass
from typing import Optional

from simplerequest.common.errors import ErrorKind


@dataclass(frozen=True)
class RequestOutcome:
    """
    Result of one Request.execute() call.

    Transport failures are carried in ``error`` / ``error_kind`` rather than
    raised; ``status_code`` is 0 when no response was received.
    """

    url: str
    method: str
    status_code: int = 0
    header: str = ""
    body: str = ""
    content: bytes = b""
    latency_ms: int = 0
    error: str = ""
    error_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return not self.error

    def has_content(self, content: str = "") -> bool:
        return self.status_code == 200 and bool(self.body) and content in self.body
