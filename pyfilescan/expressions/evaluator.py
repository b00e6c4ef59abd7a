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
from typing import Any, Mapping

from pyfilescan.expressions.expressions import (AlwaysFalse, AlwaysTrue, And,
                                                Expression, Not, Or,
                                                Predicate)
from pyfilescan.schema.types import StructType


class Evaluator:
    """Evaluates a row filter against rows of a struct type.

    Column names are bound once against ``struct``; an unknown column raises
    ``ValueError`` at construction rather than silently matching nothing.
    """

    def __init__(self, struct: StructType, expr: Expression, case_sensitive: bool = True):
        self.struct = struct
        self.expr = expr
        self.case_sensitive = case_sensitive
        self._names = {}
        self._bind(expr)

    def _bind(self, expr: Expression) -> None:
        if isinstance(expr, (And, Or)):
            self._bind(expr.left)
            self._bind(expr.right)
        elif isinstance(expr, Not):
            self._bind(expr.child)
        elif isinstance(expr, Predicate):
            nested = self.struct.field_by_name(expr.term, self.case_sensitive)
            if nested is None:
                raise ValueError(f"Cannot find field '{expr.term}' in struct: {self.struct}")
            self._names[expr.term] = nested.name

    def eval(self, row: Mapping[str, Any]) -> bool:
        return self._eval(self.expr, row)

    def _eval(self, expr: Expression, row: Mapping[str, Any]) -> bool:
        if isinstance(expr, AlwaysTrue):
            return True
        if isinstance(expr, AlwaysFalse):
            return False
        if isinstance(expr, And):
            return self._eval(expr.left, row) and self._eval(expr.right, row)
        if isinstance(expr, Or):
            return self._eval(expr.left, row) or self._eval(expr.right, row)
        if isinstance(expr, Not):
            return not self._eval(expr.child, row)
        if isinstance(expr, Predicate):
            return expr.test(row.get(self._names[expr.term]))
        raise ValueError(f"Cannot evaluate expression: {expr}")
