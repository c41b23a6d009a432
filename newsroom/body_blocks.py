"""Parse the lightweight article body markup into renderable blocks.

Markup, one construct per line:

- ``## heading``
- ``>quote: text``
- ``---`` divider
- ``[takeaways]`` ... ``[/takeaways]`` wrapping ``- item`` lines
- a Cloudinary ``/image/upload/`` URL, optionally followed by ``(caption: ...)``
- runs of ``- item`` (bulleted) or ``1. item`` (numbered) lines
- anything else is a paragraph

Inline, ``==text==`` is a highlight and ``!!text!!`` an alert.
"""

from __future__ import annotations

import re
from typing import Literal, Optional, Union

from pydantic import BaseModel

_CLOUDINARY = re.compile(r"https?://res\.cloudinary\.com/[^\s\"'<>]+", re.IGNORECASE)
_IMAGE_UPLOAD = re.compile(r"/image/upload/", re.IGNORECASE)
_ORDERED_ITEM = re.compile(r"^\d+\.\s")


class TextBlock(BaseModel):
    type: Literal["p", "h2", "quote"]
    text: str


class ImageBlock(BaseModel):
    type: Literal["img"] = "img"
    url: str
    caption: Optional[str] = None


class ListBlock(BaseModel):
    type: Literal["ul", "ol", "takeaways"]
    items: list[str]


class DividerBlock(BaseModel):
    type: Literal["divider"] = "divider"


BodyBlock = Union[TextBlock, ImageBlock, ListBlock, DividerBlock]


class InlinePart(BaseModel):
    type: Literal["text", "highlight", "alert"]
    value: str


def parse_body_to_blocks(raw: str) -> list[BodyBlock]:
    lines = (raw or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks: list[BodyBlock] = []
    i = 0

    while i < len(lines):
        line = lines[i].strip()

        if not line:
            i += 1
            continue

        if line == "---":
            blocks.append(DividerBlock())
            i += 1
            continue

        if line.startswith("## "):
            blocks.append(TextBlock(type="h2", text=line[3:].strip()))
            i += 1
            continue

        if line.startswith(">quote:"):
            blocks.append(TextBlock(type="quote", text=line[len(">quote:"):].strip()))
            i += 1
            continue

        if line == "[takeaways]":
            items: list[str] = []
            i += 1
            while i < len(lines) and lines[i].strip() != "[/takeaways]":
                item = lines[i].strip()
                if item.startswith("- "):
                    items.append(item[2:])
                i += 1
            blocks.append(ListBlock(type="takeaways", items=items))
            i += 1
            continue

        if _CLOUDINARY.search(line) and _IMAGE_UPLOAD.search(line):
            caption = None
            following = lines[i + 1].strip() if i + 1 < len(lines) else ""
            if following.startswith("(caption:"):
                caption = following[len("(caption:"):].rstrip(")").strip()
                i += 1
            blocks.append(ImageBlock(url=line, caption=caption))
            i += 1
            continue

        if line.startswith("- "):
            items = []
            while i < len(lines) and lines[i].strip().startswith("- "):
                items.append(lines[i].strip()[2:])
                i += 1
            blocks.append(ListBlock(type="ul", items=items))
            continue

        if _ORDERED_ITEM.match(line):
            items = []
            while i < len(lines) and _ORDERED_ITEM.match(lines[i].strip()):
                items.append(_ORDERED_ITEM.sub("", lines[i].strip(), count=1))
                i += 1
            blocks.append(ListBlock(type="ol", items=items))
            continue

        blocks.append(TextBlock(type="p", text=line))
        i += 1

    return blocks


def parse_inline_highlight(text: str) -> list[InlinePart]:
    parts: list[InlinePart] = []
    i = 0

    while i < len(text):
        yellow = text.find("==", i)
        red = text.find("!!", i)
        candidates = [pos for pos in (yellow, red) if pos != -1]
        if not candidates:
            parts.append(InlinePart(type="text", value=text[i:]))
            break

        start = min(candidates)
        if start > i:
            parts.append(InlinePart(type="text", value=text[i:start]))

        marker = "!!" if text.startswith("!!", start) else "=="
        end = text.find(marker, start + 2)
        if end == -1:
            parts.append(InlinePart(type="text", value=text[start:]))
            break

        parts.append(
            InlinePart(
                type="alert" if marker == "!!" else "highlight",
                value=text[start + 2:end],
            )
        )
        i = end + 2

    return parts
