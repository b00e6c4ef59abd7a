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
Residual filters: the part of a row filter that partition values cannot decide.

A predicate on a column that an identity partition field covers is fully
decided by the partition value of a file, so it folds to true or false. Every
other predicate stays in the residual and must be evaluated per row.
"""

from typing import Any, Mapping, Optional

from pyfilescan.expressions.expressions import (And, Expression, Not, Or,
                                                Predicate, always_false,
                                                always_true, and_, not_, or_)
from pyfilescan.schema.partition_spec import PartitionSpec
from pyfilescan.schema.schema import Schema


class ResidualEvaluator:

    def __init__(self, spec: PartitionSpec, schema: Schema, expr: Expression,
                 case_sensitive: bool = True):
        self.spec = spec
        self.expr = expr
        self.case_sensitive = case_sensitive
        # column name -> partition field name, for identity partitions only
        self._identity_fields = {}
        for partition_field in spec.fields:
            if not partition_field.is_identity():
                continue
            source = schema.as_struct().field(partition_field.source_id)
            if source is not None:
                key = source.name if case_sensitive else source.name.lower()
                self._identity_fields[key] = partition_field.name

    @staticmethod
    def unpartitioned(expr: Expression) -> "ResidualEvaluator":
        return UnpartitionedResidualEvaluator(expr)

    @staticmethod
    def of(spec: PartitionSpec, schema: Schema, expr: Expression,
           case_sensitive: bool = True) -> "ResidualEvaluator":
        if spec.is_unpartitioned():
            return ResidualEvaluator.unpartitioned(expr)
        return ResidualEvaluator(spec, schema, expr, case_sensitive)

    def residual_for(self, partition: Optional[Mapping[str, Any]]) -> Expression:
        return self._residual(self.expr, partition or {})

    def _residual(self, expr: Expression, partition: Mapping[str, Any]) -> Expression:
        if isinstance(expr, And):
            return and_(self._residual(expr.left, partition), self._residual(expr.right, partition))
        if isinstance(expr, Or):
            return or_(self._residual(expr.left, partition), self._residual(expr.right, partition))
        if isinstance(expr, Not):
            return not_(self._residual(expr.child, partition))
        if isinstance(expr, Predicate):
            key = expr.term if self.case_sensitive else expr.term.lower()
            partition_name = self._identity_fields.get(key)
            if partition_name is None or partition_name not in partition:
                return expr
            return always_true() if expr.test(partition[partition_name]) else always_false()
        return expr


class UnpartitionedResidualEvaluator(ResidualEvaluator):
    """Without partition columns nothing can be eliminated: the residual is the filter."""

    def __init__(self, expr: Expression):
        super().__init__(PartitionSpec.unpartitioned(), Schema(), expr)

    def residual_for(self, partition: Optional[Mapping[str, Any]]) -> Expression:
        return self.expr
