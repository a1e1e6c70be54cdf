"""Escape raw `.nc` pseudo-SGML into well-formed markup.

Feed records are line-oriented: value tags such as ``<CONFORMED-NAME>Acme``
are never closed, and document bodies between ``<TEXT>`` and ``</TEXT>`` hold
arbitrary text (often HTML). `MarkupTransformer` walks the lines once,
closing value tags, escaping their values and escaping free-text lines so the
result can be handed to an XML parser.
"""

from __future__ import annotations

from typing import Iterable
from xml.sax.saxutils import escape

# Unclosed tags that never carry content
SKIPPED_TAGS = frozenset({"CONFIRMING-COPY", "PAPER"})

# Date-only fields get a time component so they parse as date-times
DATE_TAGS = frozenset({"FILING-DATE", "PERIOD", "DATE-OF-FILING-CHANGE", "DATE-CHANGED"})
MIDNIGHT_SUFFIX = " 00:00:00"

TEXT_OPEN_TAG = "TEXT"
TEXT_CLOSE_TAG = "/TEXT"

_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_markup(value: str) -> str:
    """Escape `&`, `<`, `>`, and both quote characters."""
    return escape(value, _QUOTE_ENTITIES)


def tag_name(line: str) -> str:
    """Return the tag name opening `line`, or an empty string.

    Examples:
        >>> tag_name("<CIK>0000123456")
        'CIK'
        >>> tag_name("</TEXT>")
        '/TEXT'
        >>> tag_name("plain text")
        ''
    """
    if not line.startswith("<"):
        return ""
    end = line.find(">")
    if end <= 1:
        return ""
    return line[1:end]


def has_value(line: str) -> bool:
    """True when something follows the opening tag on this line."""
    end = line.find(">")
    if not line.startswith("<") or end == -1:
        return False
    return len(line) > end + 1


def tag_value(line: str) -> str:
    """Return everything after the first `>`."""
    return line[line.find(">") + 1 :]


class MarkupTransformer:
    """Line state machine converting one raw record into escaped markup.

    The only state is whether the current line sits inside a ``<TEXT>``
    block. A transformer instance handles a single record; create a new one
    (or call `transform`) per archive entry.
    """

    def __init__(self) -> None:
        self.inside_free_text = False

    def transform_line(self, line: str) -> str | None:
        """Return the escaped line, or None when the line is dropped."""
        name = tag_name(line)

        if name in SKIPPED_TAGS:
            return None

        # Closing marker is emitted as-is, not escaped as text
        if name == TEXT_CLOSE_TAG:
            self.inside_free_text = False

        if name in DATE_TAGS:
            line = f"{line.rstrip()}{MIDNIGHT_SUFFIX}"

        if not self.inside_free_text and has_value(line):
            line = f"<{name}>{escape_markup(tag_value(line))}</{name}>"
        elif self.inside_free_text:
            line = escape_markup(line)

        # Opening marker is treated as a normal tag line
        if name == TEXT_OPEN_TAG:
            self.inside_free_text = True

        return line

    def transform(self, lines: Iterable[str]) -> str:
        """Transform every line and join the output, one line per newline."""
        parts: list[str] = []
        for line in lines:
            out = self.transform_line(line)
            if out is None:
                continue
            parts.append(out)
            parts.append("\n")
        return "".join(parts)


def transform_record(text: str) -> str:
    """Escape a whole decoded `.nc` record (LF line endings)."""
    return MarkupTransformer().transform(text.split("\n"))
