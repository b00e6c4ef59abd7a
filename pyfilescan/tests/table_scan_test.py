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
Tests for scan refinement: every refine call returns a new scan.
"""

import shutil
import tempfile
import unittest

from pyfilescan.expressions.expressions import (AlwaysTrue, And, equal,
                                                greater_than)
from pyfilescan.read.table_scan import TableScanContext
from pyfilescan.table.metadata.data_files_table import DataFilesTable
from pyfilescan.tests.table_test_utils import (TableWriter, data_file_record,
                                               manifest_entry_record)


class TableScanTest(unittest.TestCase):

    def setUp(self):
        self.warehouse = tempfile.mkdtemp()
        self.writer = TableWriter(self.warehouse)
        for i, ts in enumerate((1000, 2000, 3000)):
            manifest = self.writer.add_manifest(
                f"manifest-{i}.avro", [manifest_entry_record(data_file_record(f"s3://bucket/data/{i}.parquet"))])
            self.writer.commit([manifest], timestamp_ms=ts)
        table = self.writer.load()
        self.files_table = DataFilesTable(table.operations(), table)

    def tearDown(self):
        shutil.rmtree(self.warehouse, ignore_errors=True)

    def test_default_context(self):
        context = self.files_table.new_scan().context()
        self.assertEqual(context, TableScanContext())
        self.assertIsNone(context.snapshot_id)
        self.assertEqual(context.row_filter, AlwaysTrue())
        self.assertTrue(context.case_sensitive)
        self.assertFalse(context.col_stats)
        self.assertIsNone(context.selected_columns)

    def test_refine_returns_new_scan(self):
        scan = self.files_table.new_scan()
        refined = scan.use_snapshot(1).filter(equal("file_format", "PARQUET")).case_sensitive(False) \
            .include_column_stats().select(["file_path"])

        self.assertIsNot(scan, refined)
        self.assertEqual(scan.context(), TableScanContext())
        self.assertEqual(refined.context().snapshot_id, 1)
        self.assertFalse(refined.is_case_sensitive())
        self.assertTrue(refined.context().col_stats)
        self.assertEqual(refined.context().selected_columns, ("file_path",))

    def test_filters_are_anded(self):
        first = equal("file_format", "PARQUET")
        second = greater_than("record_count", 10)
        scan = self.files_table.new_scan().filter(first).filter(second)
        self.assertEqual(scan.filter_expression(), And(first, second))

    def test_current_snapshot_by_default(self):
        self.assertEqual(self.files_table.new_scan().snapshot().snapshot_id, 3)

    def test_use_snapshot(self):
        scan = self.files_table.new_scan().use_snapshot(2)
        self.assertEqual(scan.snapshot().snapshot_id, 2)
        self.assertEqual([t.file().file_path for t in scan.plan_files()],
                         [self.writer.metadata_path("manifest-1.avro")])

    def test_use_unknown_snapshot_raises(self):
        with self.assertRaises(ValueError):
            self.files_table.new_scan().use_snapshot(99)

    def test_snapshot_cannot_be_overridden(self):
        scan = self.files_table.new_scan().use_snapshot(1)
        with self.assertRaises(ValueError):
            scan.use_snapshot(2)
        with self.assertRaises(ValueError):
            scan.as_of_time(2500)

    def test_as_of_time(self):
        self.assertEqual(self.files_table.new_scan().as_of_time(2500).snapshot().snapshot_id, 2)
        self.assertEqual(self.files_table.new_scan().as_of_time(3000).snapshot().snapshot_id, 3)

    def test_as_of_time_before_first_snapshot_raises(self):
        with self.assertRaises(ValueError):
            self.files_table.new_scan().as_of_time(500)

    def test_select_unknown_column_raises_on_schema(self):
        scan = self.files_table.new_scan().select(["no_such_column"])
        with self.assertRaises(ValueError):
            scan.schema()

    def test_case_insensitive_select(self):
        scan = self.files_table.new_scan().case_sensitive(False).select(["FILE_PATH"])
        self.assertEqual(scan.schema().column_names(), ["file_path"])


if __name__ == '__main__':
    unittest.main()
