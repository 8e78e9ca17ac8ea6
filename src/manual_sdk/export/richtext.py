"""Rich-text annotation notes: HTML fragments parsed into styled runs."""

import re
from dataclasses import dataclass, replace
from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

_BLOCK_TAGS = {"div", "p"}
_BOLD_TAGS = {"b", "strong"}
_ITALIC_TAGS = {"i", "em"}


@dataclass(frozen=True)
class TextRun:
    """A span of text with inline formatting. ``line_break`` runs carry no text."""
    text: str = ""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    color: Optional[str] = None  # RRGGBB
    line_break: bool = False


def css_color_to_hex(color: Optional[str]) -> Optional[str]:
    """'#rrggbb', '#rgb' or 'rgb(r, g, b)' to 'RRGGBB'. Anything else gives None."""
    if not color:
        return None
    color = color.strip()
    if color.startswith("#"):
        value = color[1:]
        if len(value) == 3:
            value = "".join(c * 2 for c in value)
        if re.fullmatch(r"[0-9a-fA-F]{6}", value):
            return value.upper()
        return None
    parts = re.findall(r"\d+", color)
    if color.lower().startswith("rgb") and len(parts) >= 3:
        r, g, b = (min(int(p), 255) for p in parts[:3])
        return f"{r:02X}{g:02X}{b:02X}"
    return None


def _inline_style(tag: Tag) -> dict[str, str]:
    declarations = {}
    for decl in (tag.get("style") or "").split(";"):
        name, sep, value = decl.partition(":")
        if sep:
            declarations[name.strip().lower()] = value.strip().lower()
    return declarations


def _is_bold(weight: str) -> bool:
    return weight == "bold" or (weight.isdigit() and int(weight) >= 700)


def _style_for(tag: Tag, current: TextRun) -> TextRun:
    css = _inline_style(tag)
    name = tag.name.lower()
    style = current
    if name in _BOLD_TAGS or _is_bold(css.get("font-weight", "")):
        style = replace(style, bold=True)
    if name in _ITALIC_TAGS or css.get("font-style") == "italic":
        style = replace(style, italic=True)
    if name == "u" or "underline" in css.get("text-decoration", ""):
        style = replace(style, underline=True)
    color = css_color_to_hex(tag.get("color") or css.get("color"))
    if color:
        style = replace(style, color=color)
    return style


def parse_note(html: str) -> list[TextRun]:
    """Flatten an HTML note into runs, with explicit line-break runs between lines."""
    if not html:
        return []
    runs: list[TextRun] = []

    def walk(node, style: TextRun) -> None:
        if isinstance(node, Comment):
            return
        if isinstance(node, NavigableString):
            text = str(node)
            if text:
                runs.append(replace(style, text=text))
            return
        if not isinstance(node, Tag):
            return
        name = node.name.lower()
        if name == "br":
            runs.append(TextRun(line_break=True))
            return
        if name in _BLOCK_TAGS and runs and not runs[-1].line_break:
            runs.append(TextRun(line_break=True))
        child_style = _style_for(node, style)
        for child in node.children:
            walk(child, child_style)

    soup = BeautifulSoup(html, "html.parser")
    for child in soup.children:
        walk(child, TextRun())
    return runs


def split_lines(runs: list[TextRun]) -> list[list[TextRun]]:
    """Group runs into lines at each line-break run."""
    lines: list[list[TextRun]] = [[]]
    for run in runs:
        if run.line_break:
            lines.append([])
        else:
            lines[-1].append(run)
    return lines


def plain_text(html: str) -> str:
    return "\n".join("".join(r.text for r in line) for line in split_lines(parse_note(html)))
