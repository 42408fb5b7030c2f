"""Render SQLAlchemy clauses to text plus an ordered parameter list."""
from typing import Any, List, Tuple

from sqlalchemy.engine import Dialect
from sqlalchemy.sql import ClauseElement


def render(clause: ClauseElement, dialect: Dialect) -> Tuple[str, List[Any]]:
    """
    Compile a clause for the given dialect.

    Returns the SQL text with placeholders and the bound values in the order
    their placeholders appear in that text.
    """
    compiled = clause.compile(dialect=dialect)
    params = compiled.params
    if compiled.positiontup:
        ordered = [params[name] for name in compiled.positiontup]
    else:
        ordered = list(params.values())
    return str(compiled), ordered
