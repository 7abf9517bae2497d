"""Result envelopes returned by a scrape.

Every scrape yields exactly one of two shapes:

* ``ScrapeSuccess`` — final URL, status, body, headers, cookies and, when the
  matching post-action ran, a screenshot and a script result.
* ``ScrapeFailure`` — the *requested* URL, an error message and status 500.

The shapes never mix. A session accumulates its data in a ``PageCapture`` and
only converts it into ``ScrapeSuccess`` once capturing has finished; on any
failure the capture is discarded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, Field

FAILURE_STATUS_CODE = 500


@dataclass
class PageCapture:
    """Data collected by a session while it moves through its stages."""

    headers: dict[str, str] = field(default_factory=dict)
    status_code: int = 0
    final_url: str = ""
    body: str = ""
    cookies: list[dict[str, Any]] = field(default_factory=list)
    screenshot: str | None = None
    has_screenshot: bool = False
    eval_result: Any = None
    has_eval_result: bool = False


class ScrapeSuccess(BaseModel):
    """Envelope for a page that was fetched and captured."""

    url: str
    status_code: int
    body: str
    headers: dict[str, str] = Field(default_factory=dict)
    cookies: list[dict[str, Any]] = Field(default_factory=list)
    screenshot: str | None = None
    eval_result: Any = None

    @property
    def success(self) -> bool:
        return True

    @classmethod
    def from_capture(cls, capture: PageCapture) -> "ScrapeSuccess":
        """Build the envelope, setting optional fields only when their action ran."""
        values: dict[str, Any] = {
            "url": capture.final_url,
            "status_code": capture.status_code,
            "body": capture.body,
            "headers": capture.headers,
            "cookies": capture.cookies,
        }
        if capture.has_screenshot:
            values["screenshot"] = capture.screenshot
        if capture.has_eval_result:
            values["eval_result"] = capture.eval_result
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict, omitting post-action fields that did not run."""
        exclude = {name for name in ("screenshot", "eval_result") if name not in self.model_fields_set}
        return self.model_dump(mode="json", exclude=exclude)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


class ScrapeFailure(BaseModel):
    """Envelope for a scrape that failed at any stage."""

    url: str
    error: str
    status_code: int = FAILURE_STATUS_CODE

    @property
    def success(self) -> bool:
        return False

    @classmethod
    def from_error(cls, url: str, error: BaseException) -> "ScrapeFailure":
        """Build the envelope from the requested URL and an exception."""
        message = str(error) or type(error).__name__
        return cls(url=url, error=message)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


ScrapeResult = Union[ScrapeSuccess, ScrapeFailure]
