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
Tests for ResidualEvaluator.
"""

import unittest

from pyfilescan.expressions.expressions import (AlwaysFalse, AlwaysTrue,
                                                and_, equal, greater_than,
                                                in_, is_null, not_, or_)
from pyfilescan.expressions.residual_evaluator import ResidualEvaluator
from pyfilescan.schema.partition_spec import (UNPARTITIONED_SPEC,
                                              PartitionField, PartitionSpec)
from pyfilescan.tests.table_test_utils import EVENTS_SCHEMA, REGION_SPEC


class UnpartitionedResidualTest(unittest.TestCase):

    def test_residual_is_the_filter(self):
        row_filter = and_(equal("region", "eu"), greater_than("id", 5))
        residuals = ResidualEvaluator.unpartitioned(row_filter)
        self.assertEqual(residuals.residual_for({}), row_filter)
        self.assertEqual(residuals.residual_for(None), row_filter)
        self.assertEqual(residuals.residual_for({"region": "us"}), row_filter)

    def test_of_unpartitioned_spec(self):
        row_filter = equal("region", "eu")
        residuals = ResidualEvaluator.of(UNPARTITIONED_SPEC, EVENTS_SCHEMA, row_filter)
        self.assertEqual(residuals.residual_for({"region": "us"}), row_filter)


class PartitionedResidualTest(unittest.TestCase):

    def residual(self, row_filter, partition, spec=REGION_SPEC, case_sensitive=True):
        return ResidualEvaluator.of(spec, EVENTS_SCHEMA, row_filter, case_sensitive).residual_for(partition)

    def test_identity_predicate_folds_to_true(self):
        self.assertEqual(self.residual(equal("region", "eu"), {"region": "eu"}), AlwaysTrue())

    def test_identity_predicate_folds_to_false(self):
        self.assertEqual(self.residual(equal("region", "eu"), {"region": "us"}), AlwaysFalse())

    def test_other_columns_remain(self):
        row_filter = and_(equal("region", "eu"), greater_than("id", 5))
        self.assertEqual(self.residual(row_filter, {"region": "eu"}), greater_than("id", 5))
        self.assertEqual(self.residual(row_filter, {"region": "us"}), AlwaysFalse())

    def test_or_and_not_simplify(self):
        row_filter = or_(in_("region", "eu", "apac"), greater_than("id", 5))
        self.assertEqual(self.residual(row_filter, {"region": "apac"}), AlwaysTrue())
        self.assertEqual(self.residual(row_filter, {"region": "us"}), greater_than("id", 5))
        self.assertEqual(self.residual(not_(equal("region", "eu")), {"region": "eu"}), AlwaysFalse())

    def test_null_partition_value(self):
        self.assertEqual(self.residual(is_null("region"), {"region": None}), AlwaysTrue())
        self.assertEqual(self.residual(equal("region", "eu"), {"region": None}), AlwaysFalse())

    def test_missing_partition_value_keeps_predicate(self):
        self.assertEqual(self.residual(equal("region", "eu"), {}), equal("region", "eu"))

    def test_non_identity_transform_keeps_predicate(self):
        spec = PartitionSpec(PartitionField(source_id=3, field_id=1000, name="ts_day", transform="day"))
        row_filter = greater_than("ts", 0)
        self.assertEqual(self.residual(row_filter, {"ts_day": 19000}, spec=spec), row_filter)

    def test_case_insensitive_column_names(self):
        self.assertEqual(self.residual(equal("REGION", "eu"), {"region": "eu"}, case_sensitive=False),
                         AlwaysTrue())
        self.assertEqual(self.residual(equal("REGION", "eu"), {"region": "eu"}), equal("REGION", "eu"))


if __name__ == '__main__':
    unittest.main()
