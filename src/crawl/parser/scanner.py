"""Tokenizer for Crawl source text.

Indentation is significant: the scanner tracks an indentation stack and emits
``INDENT``/``DEDENT`` tokens at the start of logical lines, followed by the
line's tokens and a ``NEWLINE``.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any

from crawl.errors import CrawlSyntaxError

KEYWORDS = {
    "procedure": "PROCEDURE",
    "end": "END",
    "if": "IF",
    "roll": "ROLL",
    "on": "ON",
    "table": "TABLE",
    "load": "LOAD",
    "set-fact": "SET_FACT",
    "set-persistent-fact": "SET_PERSISTENT_FACT",
    "clear-fact": "CLEAR_FACT",
    "clear-persistent-fact": "CLEAR_PERSISTENT_FACT",
    "swap-fact": "SWAP_FACT",
    "swap-persistent-fact": "SWAP_PERSISTENT_FACT",
    "fact?": "FACT_TEST",
    "persistent-fact?": "PERSISTENT_FACT_TEST",
    "reminder": "REMINDER",
}

SYMBOLS = {
    "%": "PERCENT",
    "+": "PLUS",
    "-": "MINUS",
}

ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}

_SPEC_RE = re.compile(r"(\d+)d(\d+)", re.ASCII)
_RANGE_RE = re.compile(r"(\d+)-(\d+)", re.ASCII)
_NUMBER_RE = re.compile(r"\d+", re.ASCII)
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z0-9_-]*\??")


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    line: int
    column: int

    def describe(self) -> str:
        if self.kind in ("NEWLINE", "INDENT", "DEDENT", "EOF"):
            return self.kind.lower()
        if self.kind == "STRING":
            return f"string {self.value!r}"
        if self.kind == "SPEC":
            return f"roll specifier '{self.value[0]}d{self.value[1]}'"
        if self.kind == "RANGE":
            return f"range '{self.value[0]}-{self.value[1]}'"
        return f"'{self.value}'"


class Scanner:
    def __init__(self, source: str) -> None:
        self.source = source

    def tokens(self) -> list[Token]:
        out: list[Token] = []
        indents = [0]
        line_no = 0
        for line_no, raw in enumerate(self.source.splitlines(), start=1):
            line_tokens = self._scan_line(raw, line_no)
            if not line_tokens:
                continue
            indent_text = raw[: len(raw) - len(raw.lstrip(" \t"))]
            if " " in indent_text and "\t" in indent_text:
                raise CrawlSyntaxError("Indentation mixes tabs and spaces.", line=line_no, column=1)
            width = len(indent_text)
            if width > indents[-1]:
                indents.append(width)
                out.append(Token("INDENT", width, line_no, 1))
            elif width < indents[-1]:
                while width < indents[-1]:
                    indents.pop()
                    out.append(Token("DEDENT", width, line_no, 1))
                if width != indents[-1]:
                    raise CrawlSyntaxError(
                        "Inconsistent indentation: dedent does not match any outer block.",
                        line=line_no,
                        column=width + 1,
                    )
            out.extend(line_tokens)
            out.append(Token("NEWLINE", None, line_no, len(raw) + 1))
        eof_line = line_no + 1
        while len(indents) > 1:
            indents.pop()
            out.append(Token("DEDENT", 0, eof_line, 1))
        out.append(Token("EOF", None, eof_line, 1))
        return out

    def _scan_line(self, raw: str, line_no: int) -> list[Token]:
        out: list[Token] = []
        i = 0
        n = len(raw)
        while i < n:
            ch = raw[i]
            col = i + 1
            if ch in " \t\r":
                i += 1
                continue
            if ch == "#":
                break

            if ch == '"':
                text, i = self._scan_string(raw, i, line_no)
                out.append(Token("STRING", text, line_no, col))
                continue

            if raw.startswith("=>", i):
                out.append(Token("ARROW", "=>", line_no, col))
                i += 2
                continue

            if ch in SYMBOLS:
                out.append(Token(SYMBOLS[ch], ch, line_no, col))
                i += 1
                continue

            if _NUMBER_RE.match(raw, i):
                tok, i = self._scan_numeric(raw, i, line_no)
                out.append(tok)
                continue

            m = _WORD_RE.match(raw, i)
            if m:
                word = m.group(0)
                kind = KEYWORDS.get(word)
                if kind is None:
                    if word.endswith("?"):
                        raise CrawlSyntaxError(f"Unknown test keyword {word!r}", line=line_no, column=col)
                    out.append(Token("IDENT", word, line_no, col))
                else:
                    out.append(Token(kind, word, line_no, col))
                i = m.end()
                continue

            raise CrawlSyntaxError(f"Unexpected character {ch!r}", line=line_no, column=col)
        return out

    @staticmethod
    def _scan_string(raw: str, start: int, line_no: int) -> tuple[str, int]:
        buf: list[str] = []
        i = start + 1
        while True:
            if i >= len(raw):
                raise CrawlSyntaxError("Unterminated string", line=line_no, column=start + 1)
            c = raw[i]
            if c == '"':
                return "".join(buf), i + 1
            if c == "\\":
                esc = raw[i + 1] if i + 1 < len(raw) else ""
                if esc not in ESCAPES:
                    raise CrawlSyntaxError(f"Unknown escape \\{esc}", line=line_no, column=i + 1)
                buf.append(ESCAPES[esc])
                i += 2
                continue
            buf.append(c)
            i += 1

    @staticmethod
    def _scan_numeric(raw: str, start: int, line_no: int) -> tuple[Token, int]:
        col = start + 1
        for pattern, kind in ((_SPEC_RE, "SPEC"), (_RANGE_RE, "RANGE")):
            m = pattern.match(raw, start)
            if m:
                end = m.end()
                value: Any = (int(m.group(1)), int(m.group(2)))
                break
        else:
            m = _NUMBER_RE.match(raw, start)
            end = m.end()
            kind = "NUMBER"
            value = int(m.group(0))
        if end < len(raw) and (raw[end].isalnum() or raw[end] == "_"):
            raise CrawlSyntaxError(
                f"Malformed numeric literal {raw[start:end + 1]!r}", line=line_no, column=col
            )
        return Token(kind, value, line_no, col), end


def tokenize(source: str) -> list[Token]:
    return Scanner(source).tokens()
