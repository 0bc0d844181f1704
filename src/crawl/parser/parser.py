"""Recursive-descent parser turning tokens into a ``Program``."""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from crawl.dice import RollSpecifier
from crawl.errors import CrawlSyntaxError, DefinitionError
from crawl.ir.statements import (
    ClearFact,
    ClearPersistentFact,
    Consequent,
    DiceRoll,
    DiceRollCheck,
    FactCheck,
    FormatString,
    IfThen,
    LoadTable,
    MatchingArm,
    MatchingRoll,
    ProcedureCall,
    ProcedureDecl,
    Program,
    Reminder,
    SetFact,
    SetPersistentFact,
    Statement,
    SwapFact,
    SwapPersistentFact,
    TableRoll,
)
from crawl.ir.targets import Range, RollTarget, Value
from crawl.parser.scanner import Token, tokenize

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PLAIN_FACT_CONSEQUENTS = {
    "CLEAR_FACT": ClearFact,
    "CLEAR_PERSISTENT_FACT": ClearPersistentFact,
    "SWAP_FACT": SwapFact,
    "SWAP_PERSISTENT_FACT": SwapPersistentFact,
}


class Parser:
    def __init__(self, tokens: list[Token], source_name: str = "<script>") -> None:
        self.tokens = tokens
        self.source_name = source_name
        self.i = 0

    # -- token helpers ------------------------------------------------------

    def _peek(self, n: int = 0) -> Token:
        j = self.i + n
        return self.tokens[j] if j < len(self.tokens) else self.tokens[-1]

    def _eat(self, kind: str, expected: Optional[str] = None) -> Token:
        tok = self._peek()
        if tok.kind != kind:
            raise self._error(f"Expected {expected or kind.lower()}, got {tok.describe()}", tok)
        self.i += 1
        return tok

    def _match(self, *kinds: str) -> Optional[Token]:
        tok = self._peek()
        if tok.kind in kinds:
            self.i += 1
            return tok
        return None

    @staticmethod
    def _error(message: str, tok: Token) -> CrawlSyntaxError:
        return CrawlSyntaxError(message, line=tok.line, column=tok.column)

    @staticmethod
    def _define(tok: Token, factory: Callable[[], T]) -> T:
        try:
            return factory()
        except DefinitionError as exc:
            if exc.line is None:
                exc.line = tok.line
                exc.column = tok.column
            raise

    # -- program structure --------------------------------------------------

    def parse(self) -> Program:
        body: list[Statement] = []
        while self._peek().kind != "EOF":
            tok = self._peek()
            if tok.kind == "INDENT":
                raise self._error("Unexpected indent at top level", tok)
            if tok.kind == "PROCEDURE":
                body.append(self._procedure())
            elif tok.kind == "LOAD":
                body.append(self._load_table())
            else:
                body.append(self._statement())
        program = Program(statements=tuple(body), source_name=self.source_name)
        logger.debug("parsed %s: %d top-level statement(s)", self.source_name, len(body))
        return program

    def _procedure(self) -> ProcedureDecl:
        tok = self._eat("PROCEDURE")
        name = self._eat("IDENT", "procedure name")
        self._eat("NEWLINE", "newline after procedure name")
        if self._peek().kind != "INDENT":
            raise self._error(f"Procedure {name.value!r} body must be indented", self._peek())
        self._eat("INDENT")
        body: list[Statement] = []
        while self._peek().kind not in ("DEDENT", "EOF"):
            inner = self._peek()
            if inner.kind == "INDENT":
                raise self._error("Inconsistent indentation inside procedure body", inner)
            if inner.kind in ("PROCEDURE", "LOAD"):
                raise self._error(f"{inner.value!r} is only allowed at top level", inner)
            body.append(self._statement())
        self._eat("DEDENT")
        self._expect_end(f"procedure {name.value!r}", tok)
        return self._define(tok, lambda: ProcedureDecl(name=name.value, body=tuple(body), line=tok.line))

    def _load_table(self) -> LoadTable:
        tok = self._eat("LOAD")
        self._eat("TABLE", "'table' after 'load'")
        name = self._eat("STRING", "table identifier string")
        self._eat("NEWLINE", "end of line")
        return self._define(name, lambda: LoadTable(table=name.value, line=tok.line))

    def _expect_end(self, owner: str, header: Token) -> None:
        tok = self._peek()
        if tok.kind != "END":
            raise CrawlSyntaxError(
                f"Missing 'end' for {owner} opened on line {header.line}; got {tok.describe()}",
                line=tok.line,
                column=tok.column,
            )
        self.i += 1
        self._eat("NEWLINE", "end of line after 'end'")

    # -- statements ---------------------------------------------------------

    def _statement(self) -> Statement:
        tok = self._peek()
        if tok.kind == "IF":
            return self._if_then()
        if tok.kind == "ROLL" and self._peek(1).kind == "SPEC":
            return self._roll_statement()
        if tok.kind == "END":
            raise self._error("Unexpected 'end'", tok)
        stmt = self._consequent()
        self._eat("NEWLINE", "end of line")
        return stmt

    def _if_then(self) -> IfThen:
        tok = self._eat("IF")
        head = self._peek()
        if self._match("ROLL"):
            target = self._target()
            self._eat("ON", "'on'")
            spec = self._specifier()
            antecedent = DiceRollCheck(target=target, specifier=spec)
        elif self._match("FACT_TEST"):
            antecedent = FactCheck(name=self._eat("STRING", "fact string").value)
        elif self._match("PERSISTENT_FACT_TEST"):
            antecedent = FactCheck(
                name=self._eat("STRING", "fact string").value, persistence="persistent"
            )
        else:
            raise self._error(f"Expected roll or fact test after 'if', got {head.describe()}", head)
        self._eat("ARROW", "'=>'")
        consequent = self._consequent()
        self._eat("NEWLINE", "end of line")
        return IfThen(antecedent=antecedent, consequent=consequent, line=tok.line)

    def _roll_statement(self) -> Statement:
        tok = self._eat("ROLL")
        spec = self._specifier()
        if self._peek().kind == "ON":
            stmt = self._table_tail(tok, spec)
            self._eat("NEWLINE", "end of line")
            return stmt
        self._eat("NEWLINE", "end of line after roll")
        if self._peek().kind != "INDENT":
            return DiceRoll(specifier=spec, line=tok.line)
        self._eat("INDENT")
        arms: list[MatchingArm] = []
        while self._peek().kind not in ("DEDENT", "EOF"):
            arm_tok = self._peek()
            if arm_tok.kind == "INDENT":
                raise self._error("Inconsistent indentation inside matching roll", arm_tok)
            target = self._target()
            self._eat("ARROW", "'=>'")
            consequent = self._consequent()
            self._eat("NEWLINE", "end of line")
            arms.append(MatchingArm(target=target, consequent=consequent, line=arm_tok.line))
        self._eat("DEDENT")
        self._expect_end("matching roll", tok)
        return MatchingRoll(specifier=spec, arms=tuple(arms), line=tok.line)

    def _consequent(self) -> Consequent:
        tok = self._peek()
        kind = tok.kind
        if kind in ("SET_FACT", "SET_PERSISTENT_FACT"):
            self.i += 1
            text = self._format_string()
            cls = SetFact if kind == "SET_FACT" else SetPersistentFact
            return cls(text=text, line=tok.line)
        if kind in _PLAIN_FACT_CONSEQUENTS:
            self.i += 1
            name = self._eat("STRING", f"fact string after {tok.value!r}")
            if self._peek().kind == "PERCENT":
                raise self._error(f"{tok.value!r} takes a plain string, not a format string", self._peek())
            return _PLAIN_FACT_CONSEQUENTS[kind](name=name.value, line=tok.line)
        if kind == "REMINDER":
            self.i += 1
            return Reminder(text=self._eat("STRING", "reminder text").value, line=tok.line)
        if kind == "ROLL":
            self.i += 1
            spec = self._specifier() if self._peek().kind == "SPEC" else None
            return self._table_tail(tok, spec)
        if kind == "IDENT":
            self.i += 1
            return ProcedureCall(name=tok.value, line=tok.line)
        raise self._error(f"Expected a consequent, got {tok.describe()}", tok)

    def _table_tail(self, roll_tok: Token, spec: Optional[RollSpecifier]) -> TableRoll:
        self._eat("ON", "'on'")
        self._eat("TABLE", "'table'")
        name = self._eat("STRING", "table identifier string")
        return self._define(name, lambda: TableRoll(table=name.value, specifier=spec, line=roll_tok.line))

    def _format_string(self) -> FormatString:
        literal = self._eat("STRING", "string")
        clauses: list[DiceRoll | TableRoll] = []
        while self._match("PERCENT"):
            roll_tok = self._eat("ROLL", "'roll' after '%'")
            if self._peek().kind == "ON":
                clauses.append(self._table_tail(roll_tok, None))
                continue
            spec = self._specifier()
            if self._peek().kind == "ON":
                clauses.append(self._table_tail(roll_tok, spec))
            else:
                clauses.append(DiceRoll(specifier=spec, line=roll_tok.line))
        return self._define(literal, lambda: FormatString(literal=literal.value, clauses=tuple(clauses)))

    # -- terminals ----------------------------------------------------------

    def _specifier(self) -> RollSpecifier:
        tok = self._eat("SPEC", "roll specifier like 1d6")
        count, sides = tok.value
        modifier = 0
        if self._match("PLUS"):
            modifier = self._eat("NUMBER", "modifier").value
        elif self._match("MINUS"):
            modifier = -self._eat("NUMBER", "modifier").value
        return self._define(tok, lambda: RollSpecifier(count=count, sides=sides, modifier=modifier))

    def _target(self) -> RollTarget:
        tok = self._peek()
        sign = -1 if self._match("MINUS") else 1
        head = self._peek()
        if self._match("NUMBER"):
            value = sign * head.value
            # -3--1
            if (
                self._peek().kind == "MINUS"
                and self._peek(1).kind == "MINUS"
                and self._peek(2).kind == "NUMBER"
            ):
                self.i += 2
                hi = -self._eat("NUMBER").value
                return self._define(tok, lambda: Range(value, hi))
            return Value(value)
        if self._match("RANGE"):
            lo, hi = head.value
            return self._define(tok, lambda: Range(sign * lo, hi))
        if sign < 0:
            raise self._error(f"Expected a number after '-', got {head.describe()}", head)
        raise self._error(f"Expected a roll target (number or range), got {tok.describe()}", tok)


def parse(source: str, source_name: str = "<script>") -> Program:
    """Tokenize and parse a whole script."""

    return Parser(tokenize(source), source_name=source_name).parse()
