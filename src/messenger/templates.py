"""Localized reply copy used by the response composer and profile setup."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator

_SYNTAX = "/t (mã vận đơn) hoặc tìm nhiều mã vận đơn : /t (mã vận đơn 1,mã vận đơn 2,...)"


class MessageTemplates(BaseModel):
    """Reply strings for one deployment language.

    ``tracking_found`` is formatted with ``code`` and ``url``;
    ``tracking_not_found`` with ``code``. Everything else is sent verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tracking_found: str = (
        "Bấm vào link để xem tình trạng đơn hàng {code} : {url}. "
        "Nhập mã đơn hàng để xem tình trạng đơn hàng khác."
    )
    tracking_not_found: str = (
        "Không tìm thấy tình trạng đơn hàng {code}. "
        "Nhập mã vận đơn để xem tình trạng đơn hàng khác."
    )
    invalid_syntax: str = f"Cú pháp không hợp lệ, nhập mã vận đơn với cú pháp : {_SYNTAX}"
    syntax_help: str = f"Nhập mã vận đơn với cú pháp : {_SYNTAX}"
    thanks: str = "Thanks!"
    retry_image: str = "Oops, try sending another image."
    confirm_title: str = "Is this the right picture?"
    confirm_subtitle: str = "Tap a button to answer."
    yes_title: str = "Yes!"
    no_title: str = "No!"
    greeting: str = "Hello {{user_full_name}}!"
    menu_tracking_title: str = "Tracking"

    @model_validator(mode="after")
    def _check_placeholders(self) -> MessageTemplates:
        try:
            self.render_found("CODE", "https://example.invalid")
            self.render_not_found("CODE")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Unknown placeholder in tracking template: {exc!r}") from exc
        return self

    def render_found(self, code: str, url: str) -> str:
        return self.tracking_found.format(code=code, url=url)

    def render_not_found(self, code: str) -> str:
        return self.tracking_not_found.format(code=code)


def load_templates(path: str | None) -> MessageTemplates:
    """Load a template set from JSON; keys left out keep their defaults."""
    if path is None:
        return MessageTemplates()
    file = Path(path)
    if not file.exists():
        raise FileNotFoundError(f"Message templates file not found: {path}")
    return MessageTemplates.model_validate(json.loads(file.read_text(encoding="utf-8")))
