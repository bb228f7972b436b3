"""
Ordered predicate/transform rules.

Heuristic dispatch in the repair and segmentation stages is expressed as a
list of Rule values tried in order, so each rule can be tested on its own and
the order is visible in one place.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Rule(Generic[T, R]):
    name: str
    predicate: Callable[[T], bool]
    transform: Callable[[T], R]

    def applies(self, value: T) -> bool:
        return self.predicate(value)


def first_match(rules: Sequence[Rule[T, R]], value: T) -> Optional[Tuple[Rule[T, R], R]]:
    """Return (rule, result) for the first rule whose predicate holds, else None."""
    for rule in rules:
        if rule.predicate(value):
            return rule, rule.transform(value)
    return None


def apply_chain(rules: Sequence[Rule[T, T]], value: T) -> Tuple[T, Tuple[str, ...]]:
    """
    Thread a value through every applicable rule in order.
    Returns the final value and the names of the rules that fired.
    """
    fired = []
    for rule in rules:
        if rule.predicate(value):
            value = rule.transform(value)
            fired.append(rule.name)
    return value, tuple(fired)
