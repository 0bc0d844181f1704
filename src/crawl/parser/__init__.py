"""Scanner and parser for Crawl scripts."""

from crawl.parser.scanner import KEYWORDS, Scanner, Token, tokenize
from crawl.parser.parser import Parser, parse

__all__ = [
    "KEYWORDS",
    "Scanner",
    "Token",
    "tokenize",
    "Parser",
    "parse",
]
