"""
Filter predicates for the listing endpoints.

Query-string filters are turned into a list of structured predicates
(field, column, operator, value) and only reduced to SQL at the statement
boundary, where SQLAlchemy binds every value as a parameter.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Type

from sqlalchemy.sql import ColumnElement

from store_rating.core.errors import ValidationError

logger = logging.getLogger(__name__)

# ids and filter values are stored as 32-bit INTEGER columns
INT_MAX = 2**31 - 1


class Operator(str, Enum):
    contains = "ILIKE"
    equals = "="


@dataclass(frozen=True)
class Predicate:
    field: str
    column: Any
    operator: Operator
    value: Any

    def clause(self) -> ColumnElement:
        if self.operator is Operator.contains:
            return self.column.ilike(self.value)
        return self.column == self.value


def parse_int(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if abs(value) > INT_MAX:
        return None
    return value


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


class FilterField:
    """Turns one raw query value into at most one predicate."""

    def __init__(self, column):
        self.column = column

    def parse(self, name: str, raw: Any) -> Optional[Predicate]:
        raise NotImplementedError


class TextFilter(FilterField):
    def parse(self, name, raw):
        if _is_blank(raw):
            return None
        return Predicate(name, self.column, Operator.contains, f"%{raw}%")


class ChoiceFilter(FilterField):
    """
    Allow-listed enum filter. A value outside the allow-list is either
    dropped (strict=False) or rejected with a 400 (strict=True).
    """

    def __init__(self, column, choices: Type[Enum], strict: bool = False, message: Optional[str] = None):
        super().__init__(column)
        self.choices = choices
        self.strict = strict
        self.message = message

    def parse(self, name, raw):
        if _is_blank(raw):
            return None
        try:
            value = self.choices(raw)
        except ValueError:
            if self.strict:
                raise ValidationError(self.message or f"Invalid {name} filter value.")
            logger.debug("Ignoring invalid %s filter value %r", name, raw)
            return None
        return Predicate(name, self.column, Operator.equals, value)


class IntegerFilter(FilterField):
    def __init__(
        self,
        column,
        minimum: int = 1,
        maximum: Optional[int] = None,
        strict: bool = False,
        message: Optional[str] = None,
        reject_blank: bool = False,
    ):
        super().__init__(column)
        self.minimum = minimum
        self.maximum = maximum
        self.strict = strict
        self.message = message
        # a present but empty value counts as invalid instead of absent
        self.reject_blank = reject_blank

    def _in_range(self, value: int) -> bool:
        if value < self.minimum:
            return False
        return self.maximum is None or value <= self.maximum

    def parse(self, name, raw):
        if raw is None:
            return None
        if _is_blank(raw) and not self.reject_blank:
            return None
        value = parse_int(raw)
        if value is None or not self._in_range(value):
            if self.strict:
                raise ValidationError(self.message or f"Invalid {name} filter value.")
            return None
        return Predicate(name, self.column, Operator.equals, value)


class PredicateSet:
    """Ordered predicates, combined with AND."""

    def __init__(self, predicates: Sequence[Predicate] = ()):
        self.predicates: List[Predicate] = list(predicates)

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self.predicates)

    def __len__(self):
        return len(self.predicates)

    def clauses(self) -> List[ColumnElement]:
        return [predicate.clause() for predicate in self.predicates]

    def apply(self, statement):
        clauses = self.clauses()
        if clauses:
            statement = statement.where(*clauses)
        return statement

    def render(self, start: int = 1) -> Tuple[List[str], List[Any]]:
        """
        Positional form of the predicates, numbered from ``start`` so that it
        can follow parameters the caller has already bound.
        """
        fragments = []
        params = []
        for index, predicate in enumerate(self.predicates, start):
            fragments.append(f"{predicate.field} {predicate.operator.value} ${index}")
            params.append(predicate.value)
        return fragments, params


class PredicateBuilder:
    def __init__(self, fields: Dict[str, FilterField]):
        self.fields = fields

    def build(self, params: Mapping[str, Any]) -> PredicateSet:
        predicates = []
        for name, field in self.fields.items():
            predicate = field.parse(name, params.get(name))
            if predicate is not None:
                predicates.append(predicate)
        return PredicateSet(predicates)
