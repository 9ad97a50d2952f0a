"""
Typed view of a ``tools/call`` result.

MCP servers answer with a loosely-typed object whose ``content`` list
holds text blocks, image blocks, or anything else. The envelope turns it
into an ordered tuple of ``TextBlock | ImageBlock | OtherBlock`` so each
extraction rule can match on the block type instead of probing fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Union


@dataclass(frozen=True)
class TextBlock:
    text: str
    kind: str = "text"


@dataclass(frozen=True)
class ImageBlock:
    mime_type: str
    data: str
    kind: str = "image"

    def __repr__(self) -> str:
        return f"ImageBlock(mime_type={self.mime_type!r}, data=<{len(self.data)} chars>)"


@dataclass(frozen=True)
class OtherBlock:
    kind: str
    raw: Any = None


ContentBlock = Union[TextBlock, ImageBlock, OtherBlock]


def parse_block(item: Any) -> ContentBlock:
    """Turn one raw content item into its typed block."""
    if not isinstance(item, dict):
        return OtherBlock(kind=type(item).__name__, raw=item)

    kind = item.get("type")
    if kind == "text" and isinstance(item.get("text"), str):
        return TextBlock(text=item["text"])
    if kind == "image" and isinstance(item.get("data"), str):
        return ImageBlock(mime_type=item.get("mimeType") or "image/png", data=item["data"])
    return OtherBlock(kind=str(kind or "unknown"), raw=item)


@dataclass(frozen=True)
class ResultEnvelope:
    """
    Result of one capability invocation.

    ``raw`` keeps every top-level field other than ``content`` so that
    fallback rules (``data``, ``width``, ``success``...) can still find them.
    """
    content_blocks: tuple[ContentBlock, ...] = ()
    status_code: int | None = None
    is_error: bool = False
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_result(cls, result: Any) -> "ResultEnvelope":
        if not isinstance(result, dict):
            return cls(raw={"value": result} if result is not None else {})

        content = result.get("content")
        blocks = tuple(parse_block(item) for item in content) if isinstance(content, list) else ()
        raw = {k: v for k, v in result.items() if k != "content"}

        status = raw.get("status", raw.get("statusCode"))
        return cls(
            content_blocks=blocks,
            status_code=status if isinstance(status, int) and not isinstance(status, bool) else None,
            is_error=bool(raw.get("isError")),
            raw=raw,
        )

    def __iter__(self) -> Iterator[ContentBlock]:
        return iter(self.content_blocks)

    def first_block(self) -> ContentBlock | None:
        return self.content_blocks[0] if self.content_blocks else None

    def first_text(self) -> str | None:
        for block in self.content_blocks:
            if isinstance(block, TextBlock):
                return block.text
        return None

    def first_image(self) -> ImageBlock | None:
        for block in self.content_blocks:
            if isinstance(block, ImageBlock):
                return block
        return None

    def texts(self) -> list[str]:
        return [b.text for b in self.content_blocks if isinstance(b, TextBlock)]
