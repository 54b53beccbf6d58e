from enum import Enum
from typing import Optional
import requests
from pydantic import BaseModel, ConfigDict, model_validator

class FailureKind(Enum):
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    UNSPECIFIED = "unspecified"

_FAILURE_DESCRIPTIONS = {
    FailureKind.CONNECTION: "request error",
    FailureKind.TIMEOUT: "request timed out",
    FailureKind.UNSPECIFIED: "specific error type unknown",
}

def describe_failure(kind: FailureKind) -> str:
    return _FAILURE_DESCRIPTIONS[kind]

def classify_error(exc: requests.RequestException) -> FailureKind:
    """Map a requests exception onto the failure taxonomy"""
    # ConnectTimeout is both a Timeout and a ConnectionError
    if isinstance(exc, requests.Timeout):
        return FailureKind.TIMEOUT
    if isinstance(exc, requests.ConnectionError):
        return FailureKind.CONNECTION
    return FailureKind.UNSPECIFIED

class Outcome(BaseModel):
    """Result of one submission: a response status or a classified failure."""
    model_config = ConfigDict(frozen=True)

    status_code: Optional[int] = None
    failure: Optional[FailureKind] = None
    detail: str = ""

    @model_validator(mode="after")
    def check_status_or_failure(self) -> "Outcome":
        if (self.status_code is None) == (self.failure is None):
            raise ValueError("an outcome carries either a status_code or a failure")
        return self

    @classmethod
    def response(cls, status_code: int, detail: str = "") -> "Outcome":
        return cls(status_code=status_code, detail=detail)

    @classmethod
    def failed(cls, failure: FailureKind, detail: str = "") -> "Outcome":
        return cls(failure=failure, detail=detail)

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

class Transport:
    """Posts encoded readings to the collector over one private HTTP session."""

    def __init__(self, url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def submit(self, payload: bytes) -> Outcome:
        try:
            r = self.session.post(
                self.url,
                data=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return Outcome.failed(classify_error(e), detail=repr(e))
        return Outcome.response(r.status_code, detail=f"{r.reason} {r.headers}")

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
