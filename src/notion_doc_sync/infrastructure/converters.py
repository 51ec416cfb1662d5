"""Markdown <-> Notion block conversion."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit

Block = dict[str, Any]
RichText = dict[str, Any]

# Notion rejects rich text items longer than this.
MAX_TEXT_LENGTH = 2000

_EMBED_LABELS = {
    "miro.com": "Miro Board",
    "figma.com": "Figma Design",
    "youtube.com": "YouTube Video",
    "youtu.be": "YouTube Video",
    "vimeo.com": "Vimeo Video",
    "loom.com": "Loom Recording",
    "spotify.com": "Spotify",
    "soundcloud.com": "SoundCloud",
    "twitter.com": "Tweet",
    "x.com": "Tweet",
    "instagram.com": "Instagram Post",
    "linkedin.com": "LinkedIn Post",
    "github.com": "GitHub",
    "codepen.io": "CodePen",
    "jsfiddle.net": "JSFiddle",
    "replit.com": "Repl.it",
    "codesandbox.io": "CodeSandbox",
    "airtable.com": "Airtable",
    "typeform.com": "Typeform",
    "calendly.com": "Calendly",
    "maps.google.com": "Google Maps",
}

_CODE_LANGUAGES = frozenset({
    "bash", "c", "c#", "c++", "css", "diff", "docker", "go", "graphql", "html",
    "java", "javascript", "json", "kotlin", "markdown", "php", "plain text",
    "python", "ruby", "rust", "scala", "shell", "sql", "swift", "typescript", "yaml",
})  # fmt: skip

_LANGUAGE_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "sh": "shell",
    "zsh": "shell",
    "yml": "yaml",
    "md": "markdown",
    "dockerfile": "docker",
}

_AWS_LINK_RE = re.compile(r"(?P<before>\]\()(?P<url>https?://[^)]+)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Notion -> markdown
# ---------------------------------------------------------------------------


def strip_aws_credentials(markdown: str) -> str:
    """Drop the query string of link URLs that carry ``X-Amz-`` signing parameters."""

    def _strip(match: re.Match[str]) -> str:
        url = match.group("url")
        if "x-amz-" not in url.lower():
            return match.group(0)
        parts = urlsplit(url)
        return match.group("before") + urlunsplit(parts._replace(query=""))

    return _AWS_LINK_RE.sub(_strip, markdown)


def rich_text_to_markdown(items: list[RichText] | None) -> str:
    """Render Notion rich text items as inline markdown."""
    if not isinstance(items, list):
        return ""

    rendered: list[str] = []
    for item in items:
        text = item.get("plain_text") or ""

        href = item.get("href")
        if href:
            if href.startswith("/"):
                page_id = href.lstrip("/").split("?")[0]
                href = f"https://www.notion.so/{page_id}"
            text = f"[{text}]({href})"

        annotations = item.get("annotations") or {}
        if annotations.get("code"):
            text = f"`{text}`"
        if annotations.get("bold"):
            text = f"**{text}**"
        if annotations.get("italic"):
            text = f"*{text}*"
        if annotations.get("strikethrough"):
            text = f"~~{text}~~"
        if annotations.get("underline"):
            text = f"<u>{text}</u>"

        rendered.append(text)
    return "".join(rendered)


def embed_label(url: str) -> str:
    host = urlsplit(url).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return _EMBED_LABELS.get(host, "Embedded Content")


def _file_url(payload: dict[str, Any]) -> str:
    if payload.get("type") == "file":
        return str((payload.get("file") or {}).get("url") or "")
    return str((payload.get("external") or {}).get("url") or "")


def block_to_markdown(block: Block) -> str:
    """Render one Notion block; unsupported block types render as ``""``."""
    kind = block.get("type", "")
    data: dict[str, Any] = block.get(kind) or {}
    text = rich_text_to_markdown(data.get("rich_text"))

    if kind == "paragraph":
        return text
    if kind in ("heading_1", "heading_2", "heading_3"):
        return f"{'#' * int(kind[-1])} {text}"
    if kind == "bulleted_list_item":
        return f"- {text}"
    if kind == "numbered_list_item":
        return f"1. {text}"
    if kind == "to_do":
        checked = "[x]" if data.get("checked") else "[ ]"
        return f"{checked} {text}"
    if kind == "quote":
        return f"> {text}"
    if kind == "callout":
        icon = data.get("icon") or {}
        emoji = icon.get("emoji") if icon.get("type") == "emoji" else "\U0001f4a1"
        return f"{emoji} {text}"
    if kind == "code":
        return f"```{data.get('language') or ''}\n{text}\n```"
    if kind == "divider":
        return "---"
    if kind in ("bookmark", "link_preview"):
        url = data.get("url")
        return f"[{url}]({url})" if url else ""
    if kind == "embed":
        url = data.get("url")
        return f"**{embed_label(url)}**: [{url}]({url})" if url else ""
    if kind == "image":
        url = _file_url(data)
        caption = rich_text_to_markdown(data.get("caption"))
        return f"![{caption}]({url})" if url else ""
    if kind == "video":
        url = _file_url(data)
        caption = rich_text_to_markdown(data.get("caption"))
        return f"**Video**: [{caption or 'Watch Video'}]({url})" if url else ""
    if kind == "file":
        url = _file_url(data)
        name = data.get("name") or "Download File"
        return f"**File**: [{name}]({url})" if url else ""
    if kind == "pdf":
        url = _file_url(data)
        caption = rich_text_to_markdown(data.get("caption"))
        return f"**PDF**: [{caption or 'View PDF'}]({url})" if url else ""
    return ""


def blocks_to_markdown(blocks: list[Block]) -> str:
    """Render a page's top-level blocks as markdown, one block per line."""
    return "\n".join(block_to_markdown(block) for block in blocks).strip()


# ---------------------------------------------------------------------------
# markdown -> Notion
# ---------------------------------------------------------------------------

_INLINE_RE = re.compile(
    r"\*\*(?P<bold>.+?)\*\*"
    r"|~~(?P<strike>.+?)~~"
    r"|`(?P<code>[^`]+)`"
    r"|\[(?P<link_text>[^\]]+)\]\((?P<link_url>[^)\s]+)\)"
    r"|\*(?P<italic>[^*\s][^*]*)\*"
)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")
_DIVIDER_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})\s*$")
_TODO_RE = re.compile(r"^\s*[-*]\s+\[([ xX])\]\s+(.*)$")
_BULLET_RE = re.compile(r"^\s*[-*+]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+(.*)$")
_QUOTE_RE = re.compile(r"^>\s?(.*)$")
_IMAGE_RE = re.compile(r"^!\[([^\]]*)\]\((\S+)\)\s*$")
_FENCE = "```"


def _text_item(content: str, link: str | None = None, **annotations: bool) -> list[RichText]:
    items: list[RichText] = []
    for start in range(0, len(content), MAX_TEXT_LENGTH):
        chunk = content[start : start + MAX_TEXT_LENGTH]
        item: RichText = {"type": "text", "text": {"content": chunk}}
        if link:
            item["text"]["link"] = {"url": link}
        if annotations:
            item["annotations"] = annotations
        items.append(item)
    return items


def inline_to_rich_text(text: str) -> list[RichText]:
    """Parse inline markdown (bold, italic, code, strikethrough, links) into rich text.

    Only absolute http(s) links become Notion links; other link targets are
    kept as literal markdown so that file references survive a round trip.
    """
    items: list[RichText] = []
    position = 0
    for match in _INLINE_RE.finditer(text):
        if match.start() > position:
            items.extend(_text_item(text[position : match.start()]))
        if match.group("bold") is not None:
            items.extend(_text_item(match.group("bold"), bold=True))
        elif match.group("strike") is not None:
            items.extend(_text_item(match.group("strike"), strikethrough=True))
        elif match.group("code") is not None:
            items.extend(_text_item(match.group("code"), code=True))
        elif match.group("link_url") is not None:
            url = match.group("link_url")
            if url.startswith(("http://", "https://")):
                items.extend(_text_item(match.group("link_text"), link=url))
            else:
                items.extend(_text_item(match.group(0)))
        else:
            items.extend(_text_item(match.group("italic"), italic=True))
        position = match.end()
    if position < len(text):
        items.extend(_text_item(text[position:]))
    return items


def _block(kind: str, payload: dict[str, Any]) -> Block:
    return {"object": "block", "type": kind, kind: payload}


def _code_language(raw: str) -> str:
    lang = raw.strip().lower()
    lang = _LANGUAGE_ALIASES.get(lang, lang)
    return lang if lang in _CODE_LANGUAGES else "plain text"


def markdown_to_blocks(markdown: str) -> list[Block]:
    """Convert a markdown body into Notion block objects.

    Empty or whitespace-only input yields an empty list.  Nested list
    indentation is flattened.
    """
    if not markdown.strip():
        return []

    blocks: list[Block] = []
    paragraph: list[str] = []

    def flush_paragraph() -> None:
        if paragraph:
            rich_text = inline_to_rich_text("\n".join(paragraph))
            blocks.append(_block("paragraph", {"rich_text": rich_text}))
            paragraph.clear()

    lines = markdown.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i].rstrip()

        if line.lstrip().startswith(_FENCE):
            flush_paragraph()
            language = line.lstrip()[len(_FENCE) :]
            code_lines: list[str] = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith(_FENCE):
                code_lines.append(lines[i])
                i += 1
            blocks.append(
                _block(
                    "code",
                    {
                        "rich_text": _text_item("\n".join(code_lines)),
                        "language": _code_language(language),
                    },
                )
            )
            i += 1  # closing fence
            continue

        if not line.strip():
            flush_paragraph()
            i += 1
            continue

        heading = _HEADING_RE.match(line)
        image = _IMAGE_RE.match(line)
        todo = _TODO_RE.match(line)
        if heading:
            flush_paragraph()
            level = min(len(heading.group(1)), 3)
            blocks.append(
                _block(f"heading_{level}", {"rich_text": inline_to_rich_text(heading.group(2))})
            )
        elif _DIVIDER_RE.match(line):
            flush_paragraph()
            blocks.append(_block("divider", {}))
        elif image:
            flush_paragraph()
            payload: dict[str, Any] = {"type": "external", "external": {"url": image.group(2)}}
            if image.group(1):
                payload["caption"] = inline_to_rich_text(image.group(1))
            blocks.append(_block("image", payload))
        elif todo:
            flush_paragraph()
            blocks.append(
                _block(
                    "to_do",
                    {
                        "rich_text": inline_to_rich_text(todo.group(2)),
                        "checked": todo.group(1).lower() == "x",
                    },
                )
            )
        elif match := _BULLET_RE.match(line):
            flush_paragraph()
            blocks.append(
                _block("bulleted_list_item", {"rich_text": inline_to_rich_text(match.group(1))})
            )
        elif match := _NUMBERED_RE.match(line):
            flush_paragraph()
            blocks.append(
                _block("numbered_list_item", {"rich_text": inline_to_rich_text(match.group(1))})
            )
        elif match := _QUOTE_RE.match(line):
            flush_paragraph()
            blocks.append(_block("quote", {"rich_text": inline_to_rich_text(match.group(1))}))
        else:
            paragraph.append(line)
        i += 1

    flush_paragraph()
    return blocks
