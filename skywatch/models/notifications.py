"""Structured notification messages."""

from __future__ import annotations

from html import escape
from typing import Literal

from pydantic import BaseModel, Field


class NotificationLink(BaseModel):
    """A labelled URL rendered at the bottom of a message."""

    label: str
    url: str


class NotificationMessage(BaseModel):
    """Message handed to the notification collaborator."""

    emoji: str = Field(..., description="Marker shown either side of the title")
    title: str
    severity: Literal["low", "medium", "high", "critical"] = "low"
    lines: list[str] = Field(default_factory=list, description="Ordered detail lines")
    links: list[NotificationLink] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    def render_html(self) -> str:
        """Render as Telegram HTML.

        ``lines`` are expected to be pre-escaped since they carry markup.
        """

        parts = [f"{self.emoji} <b>{escape(self.title)}</b> {self.emoji}", ""]
        parts.extend(self.lines)
        if self.links:
            parts.append(
                " | ".join(
                    f'<a href="{escape(link.url, quote=True)}">{escape(link.label)}</a>'
                    for link in self.links
                )
            )
        if self.tags:
            parts.append("")
            parts.append(" ".join(f"#{tag}" for tag in self.tags))
        return "\n".join(parts).strip()


__all__ = ["NotificationLink", "NotificationMessage"]
