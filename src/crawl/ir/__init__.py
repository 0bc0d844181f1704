"""Statement IR and roll targets."""

from crawl.ir.targets import Range, RollTarget, Value, first_match, parse_target
from crawl.ir.statements import (
    Antecedent,
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
    Persistence,
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

__all__ = [
    "Range",
    "RollTarget",
    "Value",
    "first_match",
    "parse_target",
    "Antecedent",
    "ClearFact",
    "ClearPersistentFact",
    "Consequent",
    "DiceRoll",
    "DiceRollCheck",
    "FactCheck",
    "FormatString",
    "IfThen",
    "LoadTable",
    "MatchingArm",
    "MatchingRoll",
    "Persistence",
    "ProcedureCall",
    "ProcedureDecl",
    "Program",
    "Reminder",
    "SetFact",
    "SetPersistentFact",
    "Statement",
    "SwapFact",
    "SwapPersistentFact",
    "TableRoll",
]
