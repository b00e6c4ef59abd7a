################################################################################
#  Licensed to the Apache Software Foundation (ASF) under one
#  or more contributor license agreements.  See the NOTICE file
#  distributed with this work for additional information
#  regarding copyright ownership.  The ASF licenses this file
#  to you under the Apache License, Version 2.0 (the
#  "License"); you may not use this file except in compliance
#  with the License.  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
# limitations under the License.
################################################################################
"""
Row filter expressions.

Expressions are immutable and compare by value. Build them with the helper
functions at the bottom of this module rather than the classes directly, so
that constant folding is applied:

    and_(always_true(), equal("file_format", "AVRO")) == equal("file_format", "AVRO")
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class Expression(ABC):

    @abstractmethod
    def negate(self) -> "Expression":
        """The logical inverse of this expression."""


@dataclass(frozen=True)
class AlwaysTrue(Expression):

    def negate(self) -> Expression:
        return AlwaysFalse()

    def __str__(self) -> str:
        return "true"


@dataclass(frozen=True)
class AlwaysFalse(Expression):

    def negate(self) -> Expression:
        return AlwaysTrue()

    def __str__(self) -> str:
        return "false"


@dataclass(frozen=True)
class And(Expression):
    left: Expression
    right: Expression

    def negate(self) -> Expression:
        return Or(self.left.negate(), self.right.negate())

    def __str__(self) -> str:
        return f"({self.left} and {self.right})"


@dataclass(frozen=True)
class Or(Expression):
    left: Expression
    right: Expression

    def negate(self) -> Expression:
        return And(self.left.negate(), self.right.negate())

    def __str__(self) -> str:
        return f"({self.left} or {self.right})"


@dataclass(frozen=True)
class Not(Expression):
    child: Expression

    def negate(self) -> Expression:
        return self.child

    def __str__(self) -> str:
        return f"not({self.child})"


class Operation(Enum):
    IS_NULL = "is_null"
    NOT_NULL = "not_null"
    LT = "<"
    LT_EQ = "<="
    GT = ">"
    GT_EQ = ">="
    EQ = "=="
    NOT_EQ = "!="
    IN = "in"
    NOT_IN = "not_in"
    STARTS_WITH = "starts_with"
    NOT_STARTS_WITH = "not_starts_with"


_NEGATIONS = {
    Operation.IS_NULL: Operation.NOT_NULL,
    Operation.NOT_NULL: Operation.IS_NULL,
    Operation.LT: Operation.GT_EQ,
    Operation.LT_EQ: Operation.GT,
    Operation.GT: Operation.LT_EQ,
    Operation.GT_EQ: Operation.LT,
    Operation.EQ: Operation.NOT_EQ,
    Operation.NOT_EQ: Operation.EQ,
    Operation.IN: Operation.NOT_IN,
    Operation.NOT_IN: Operation.IN,
    Operation.STARTS_WITH: Operation.NOT_STARTS_WITH,
    Operation.NOT_STARTS_WITH: Operation.STARTS_WITH,
}


@dataclass(frozen=True)
class Predicate(Expression):
    """A test of one column against zero or more literals."""

    op: Operation
    term: str
    literals: Tuple[Any, ...] = ()

    def negate(self) -> Expression:
        return Predicate(_NEGATIONS[self.op], self.term, self.literals)

    def test(self, value: Any) -> bool:
        if self.op == Operation.IS_NULL:
            return value is None
        if self.op == Operation.NOT_NULL:
            return value is not None
        if value is None:
            return False

        literal = self.literals[0] if self.literals else None
        if self.op == Operation.LT:
            return value < literal
        if self.op == Operation.LT_EQ:
            return value <= literal
        if self.op == Operation.GT:
            return value > literal
        if self.op == Operation.GT_EQ:
            return value >= literal
        if self.op == Operation.EQ:
            return value == literal
        if self.op == Operation.NOT_EQ:
            return value != literal
        if self.op == Operation.IN:
            return value in self.literals
        if self.op == Operation.NOT_IN:
            return value not in self.literals
        if self.op == Operation.STARTS_WITH:
            return str(value).startswith(str(literal))
        if self.op == Operation.NOT_STARTS_WITH:
            return not str(value).startswith(str(literal))
        raise ValueError(f"Unsupported operation: {self.op}")

    def __str__(self) -> str:
        if not self.literals:
            return f"{self.op.value}({self.term})"
        if self.op in (Operation.IN, Operation.NOT_IN, Operation.STARTS_WITH, Operation.NOT_STARTS_WITH):
            return f"{self.op.value}({self.term}, {list(self.literals)})"
        return f"{self.term} {self.op.value} {self.literals[0]!r}"


def always_true() -> Expression:
    return AlwaysTrue()


def always_false() -> Expression:
    return AlwaysFalse()


def and_(left: Expression, right: Expression, *rest: Expression) -> Expression:
    if rest:
        return and_(and_(left, right), *rest)
    if isinstance(left, AlwaysFalse) or isinstance(right, AlwaysFalse):
        return AlwaysFalse()
    if isinstance(left, AlwaysTrue):
        return right
    if isinstance(right, AlwaysTrue):
        return left
    return And(left, right)


def or_(left: Expression, right: Expression, *rest: Expression) -> Expression:
    if rest:
        return or_(or_(left, right), *rest)
    if isinstance(left, AlwaysTrue) or isinstance(right, AlwaysTrue):
        return AlwaysTrue()
    if isinstance(left, AlwaysFalse):
        return right
    if isinstance(right, AlwaysFalse):
        return left
    return Or(left, right)


def not_(child: Expression) -> Expression:
    if isinstance(child, (AlwaysTrue, AlwaysFalse)):
        return child.negate()
    if isinstance(child, Not):
        return child.child
    return Not(child)


def is_null(name: str) -> Expression:
    return Predicate(Operation.IS_NULL, name)


def not_null(name: str) -> Expression:
    return Predicate(Operation.NOT_NULL, name)


def equal(name: str, value: Any) -> Expression:
    return Predicate(Operation.EQ, name, (value,))


def not_equal(name: str, value: Any) -> Expression:
    return Predicate(Operation.NOT_EQ, name, (value,))


def less_than(name: str, value: Any) -> Expression:
    return Predicate(Operation.LT, name, (value,))


def less_than_or_equal(name: str, value: Any) -> Expression:
    return Predicate(Operation.LT_EQ, name, (value,))


def greater_than(name: str, value: Any) -> Expression:
    return Predicate(Operation.GT, name, (value,))


def greater_than_or_equal(name: str, value: Any) -> Expression:
    return Predicate(Operation.GT_EQ, name, (value,))


def in_(name: str, *values: Any) -> Expression:
    return Predicate(Operation.IN, name, tuple(values))


def not_in(name: str, *values: Any) -> Expression:
    return Predicate(Operation.NOT_IN, name, tuple(values))


def starts_with(name: str, prefix: str) -> Expression:
    return Predicate(Operation.STARTS_WITH, name, (prefix,))
