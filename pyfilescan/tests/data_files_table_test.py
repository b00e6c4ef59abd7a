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
Tests for the files metadata table, its scan planner and manifest read tasks.
"""

import json
import os
import shutil
import tempfile
import unittest
from contextlib import closing

from pyfilescan.exceptions import DecodeError, NoSnapshotError
from pyfilescan.expressions.expressions import (AlwaysTrue, and_, equal,
                                                greater_than)
from pyfilescan.expressions.residual_evaluator import ResidualEvaluator
from pyfilescan.manifest.schema.data_file import DataFile, FileFormat
from pyfilescan.read.scan_task import BaseFileScanTask
from pyfilescan.schema.partition_spec import (UNPARTITIONED_SPEC,
                                              PartitionSpecParser)
from pyfilescan.schema.schema import SchemaParser
from pyfilescan.schema.types import StringType, StructType
from pyfilescan.table.metadata.data_files_table import (TARGET_SPLIT_SIZE,
                                                        DataFilesTable,
                                                        FilesTableScan,
                                                        ManifestReadTask)
from pyfilescan.table.metadata.metadata_table_type import MetadataTableType
from pyfilescan.table.metadata.metadata_table_utils import \
    create_metadata_table
from pyfilescan.tests.table_test_utils import (REGION_SPEC, STATUS_DELETED,
                                               STATUS_EXISTING, TableWriter,
                                               data_file_record,
                                               manifest_avro_schema,
                                               manifest_entry_record,
                                               manifest_list_avro_schema,
                                               write_avro)

# a header with the wrong magic bytes
NOT_AVRO = b"\x00" * 32


class DataFilesTableTestBase(unittest.TestCase):

    def setUp(self):
        self.warehouse = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.warehouse, ignore_errors=True)

    def files_table(self, writer: TableWriter) -> DataFilesTable:
        table = writer.load()
        return DataFilesTable(table.operations(), table)


class DataFilesTableTest(DataFilesTableTestBase):
    """Tests for DataFilesTable itself."""

    def test_name_and_type(self):
        files_table = self.files_table(TableWriter(self.warehouse))
        self.assertEqual(files_table.name(), "default.events.files")
        self.assertEqual(files_table.metadata_table_type(), MetadataTableType.FILES)

    def test_schema_of_unpartitioned_table(self):
        files_table = self.files_table(TableWriter(self.warehouse))
        schema = files_table.schema()

        self.assertEqual(schema.column_names()[:5],
                         ["file_path", "file_format", "partition", "record_count", "file_size_in_bytes"])
        self.assertEqual(schema.find_field("partition").field_type, StructType())
        self.assertEqual(schema.find_field("file_path").field_id, 100)

    def test_schema_follows_partition_type(self):
        files_table = self.files_table(TableWriter(self.warehouse, spec=REGION_SPEC))
        partition = files_table.schema().find_field("partition").field_type

        self.assertEqual(len(partition.fields), 1)
        self.assertEqual(partition.fields[0].name, "region")
        self.assertEqual(partition.fields[0].field_id, 1000)
        self.assertEqual(partition.fields[0].field_type, StringType)

    def test_spec_is_always_unpartitioned(self):
        files_table = self.files_table(TableWriter(self.warehouse, spec=REGION_SPEC))
        self.assertTrue(files_table.spec().is_unpartitioned())

    def test_properties_and_io_delegate_to_table(self):
        writer = TableWriter(self.warehouse, properties={"owner": "analytics"})
        files_table = self.files_table(writer)
        self.assertEqual(files_table.properties(), {"owner": "analytics"})
        self.assertIs(files_table.io(), files_table.table().io())

    def test_location_is_manifest_list_of_current_snapshot(self):
        writer = TableWriter(self.warehouse)
        writer.commit([])
        second = writer.commit([])

        files_table = self.files_table(writer)
        self.assertEqual(files_table.location(), second.manifest_list)
        self.assertEqual(files_table.current_snapshot().snapshot_id, second.snapshot_id)
        self.assertEqual(files_table.snapshot(1).snapshot_id, 1)

    def test_location_without_snapshot_raises(self):
        files_table = self.files_table(TableWriter(self.warehouse))
        with self.assertRaises(NoSnapshotError):
            files_table.location()

    def test_new_scan_is_independent(self):
        files_table = self.files_table(TableWriter(self.warehouse))
        first = files_table.new_scan()
        second = files_table.new_scan()
        self.assertIsInstance(first, FilesTableScan)
        self.assertIsNot(first, second)

    def test_create_metadata_table_by_name(self):
        table = TableWriter(self.warehouse).load()
        self.assertIsInstance(create_metadata_table(table, "files"), DataFilesTable)
        self.assertIsInstance(create_metadata_table(table, MetadataTableType.FILES), DataFilesTable)
        with self.assertRaises(ValueError):
            create_metadata_table(table, "snapshots")


class FilesTableScanTest(DataFilesTableTestBase):
    """Tests for planning the files table."""

    def setUp(self):
        super().setUp()
        self.writer = TableWriter(self.warehouse)
        self.manifests = [
            self.writer.add_manifest(f"manifest-{i}.avro", [
                manifest_entry_record(data_file_record(f"s3://bucket/data/file-{i}-{j}.parquet"))
                for j in range(i + 1)
            ])
            for i in range(3)
        ]

    def test_one_task_per_manifest_in_order(self):
        self.writer.commit(self.manifests)
        tasks = list(self.files_table(self.writer).new_scan().plan_files())

        self.assertEqual(len(tasks), 3)
        self.assertEqual([t.file().file_path for t in tasks], [m["manifest_path"] for m in self.manifests])
        for task in tasks:
            self.assertIsInstance(task, ManifestReadTask)
            self.assertTrue(task.is_data_task())

    def test_task_describes_manifest(self):
        self.writer.commit(self.manifests)
        task = next(iter(self.files_table(self.writer).new_scan().plan_files()))
        manifest = self.manifests[0]

        self.assertEqual(task.start(), 0)
        self.assertEqual(task.length(), manifest["manifest_length"])
        self.assertEqual(task.file().file_format, FileFormat.AVRO)
        self.assertEqual(task.file().record_count,
                         manifest["added_files_count"] + manifest["existing_files_count"])
        self.assertTrue(task.spec().is_unpartitioned())

    def test_split_never_divides_manifest_task(self):
        self.writer.commit(self.manifests)
        for task in self.files_table(self.writer).new_scan().plan_files():
            self.assertEqual(task.split(1), [task])
            self.assertEqual(task.split(TARGET_SPLIT_SIZE), [task])

    def test_file_task_split_returns_itself(self):
        data_file = DataFile("s3://bucket/data/big.parquet", FileFormat.PARQUET, record_count=1000,
                             file_size_in_bytes=TARGET_SPLIT_SIZE * 3, split_offsets=[4, TARGET_SPLIT_SIZE])
        task = BaseFileScanTask(data_file, SchemaParser.to_json(self.files_table(self.writer).schema()),
                                PartitionSpecParser.to_json(UNPARTITIONED_SPEC),
                                ResidualEvaluator.unpartitioned(AlwaysTrue()))
        self.assertEqual(task.split(TARGET_SPLIT_SIZE), [task])
        self.assertEqual(task.start(), 0)
        self.assertEqual(task.length(), TARGET_SPLIT_SIZE * 3)

    def test_plan_tasks_matches_plan_files(self):
        self.writer.commit(self.manifests)
        scan = self.files_table(self.writer).new_scan()
        self.assertEqual(scan.target_split_size(), 32 * 1024 * 1024)
        self.assertEqual([t.file().file_path for t in scan.plan_tasks()],
                         [t.file().file_path for t in scan.plan_files()])

    def test_empty_manifest_list_plans_nothing(self):
        self.writer.commit([])
        self.assertEqual(list(self.files_table(self.writer).new_scan().plan_files()), [])

    def test_table_without_snapshot_plans_nothing(self):
        scan = self.files_table(self.writer).new_scan()
        self.assertIsNone(scan.snapshot())
        self.assertEqual(list(scan.plan_files()), [])

    def test_residual_is_row_filter(self):
        self.writer.commit(self.manifests)
        row_filter = and_(equal("file_format", "PARQUET"), greater_than("record_count", 10))
        scan = self.files_table(self.writer).new_scan().filter(row_filter)

        for task in scan.plan_files():
            self.assertEqual(task.residual(), row_filter)

    def test_residual_defaults_to_always_true(self):
        self.writer.commit(self.manifests)
        task = next(iter(self.files_table(self.writer).new_scan().plan_files()))
        self.assertEqual(task.residual(), AlwaysTrue())

    def test_frozen_schema_and_spec_round_trip(self):
        self.writer.commit(self.manifests)
        scan = self.files_table(self.writer).new_scan()
        task = next(iter(scan.plan_files()))

        self.assertEqual(task.schema(), scan.schema())
        self.assertEqual(SchemaParser.from_json(SchemaParser.to_json(scan.schema())), scan.schema())
        self.assertEqual(task.spec(), UNPARTITIONED_SPEC)
        self.assertEqual(PartitionSpecParser.from_json(PartitionSpecParser.to_json(task.spec())), task.spec())

    def test_selected_columns_narrow_task_schema(self):
        self.writer.commit(self.manifests)
        scan = self.files_table(self.writer).new_scan().select(["record_count", "file_path"])
        task = next(iter(scan.plan_files()))
        self.assertEqual(task.schema().column_names(), ["file_path", "record_count"])

    def test_plans_pinned_to_different_snapshots_are_independent(self):
        self.writer.commit(self.manifests[:1])
        self.writer.commit(self.manifests)
        files_table = self.files_table(self.writer)

        old_plan = files_table.new_scan().use_snapshot(1).plan_files()
        new_plan = files_table.new_scan().use_snapshot(2).plan_files()

        self.assertEqual(len(list(new_plan)), 3)
        self.assertEqual(len(list(old_plan)), 1)

    def test_plan_keeps_its_snapshot_after_new_commit(self):
        self.writer.commit(self.manifests[:1])
        files_table = self.files_table(self.writer)
        pinned_plan = files_table.new_scan().use_snapshot(1).plan_files()
        current_plan = files_table.new_scan().plan_files()

        self.writer.commit(self.manifests)
        later_plan = files_table.new_scan().plan_files()

        self.assertEqual([t.file().file_path for t in pinned_plan], [self.manifests[0]["manifest_path"]])
        self.assertEqual([t.file().file_path for t in current_plan], [self.manifests[0]["manifest_path"]])
        self.assertEqual([t.file().file_path for t in later_plan], [m["manifest_path"] for m in self.manifests])

    def test_manifest_without_file_counts_fails_plan(self):
        manifest = dict(self.manifests[0], added_files_count=None)
        self.writer.commit([manifest])
        with self.assertRaises(DecodeError) as context:
            list(self.files_table(self.writer).new_scan().plan_files())
        self.assertEqual(context.exception.location, manifest["manifest_path"])

    def test_unknown_manifest_list_record_fails_plan(self):
        snapshot = self.writer.commit(self.manifests)
        write_avro(snapshot.manifest_list, dict(manifest_list_avro_schema(), name="manifest_list_entry"),
                   self.manifests)

        with self.assertRaises(DecodeError):
            list(self.files_table(self.writer).new_scan().plan_files())

    def test_corrupt_manifest_list_fails_when_iterated(self):
        snapshot = self.writer.commit(self.manifests)
        with open(snapshot.manifest_list, "wb") as f:
            f.write(NOT_AVRO)

        plan = self.files_table(self.writer).new_scan().plan_files()
        with self.assertRaises(DecodeError):
            next(iter(plan))

    def test_legacy_manifest_list_names(self):
        self.writer.commit(self.manifests, summary_record_name="partitions", legacy_names=True)
        tasks = list(self.files_table(self.writer).new_scan().plan_files())
        self.assertEqual([t.file().record_count for t in tasks], [1, 2, 3])


class ManifestReadTaskTest(DataFilesTableTestBase):
    """Tests for reading rows from manifest tasks."""

    def test_rows_yield_live_entries_in_file_order(self):
        writer = TableWriter(self.warehouse)
        entries = [
            manifest_entry_record(data_file_record("s3://bucket/data/a.parquet", record_count=10)),
            manifest_entry_record(data_file_record("s3://bucket/data/b.parquet", record_count=20),
                                  status=STATUS_DELETED),
            manifest_entry_record(data_file_record("s3://bucket/data/c.parquet", record_count=30),
                                  status=STATUS_EXISTING),
        ]
        writer.commit([writer.add_manifest("manifest.avro", entries)])
        task = next(iter(self.files_table(writer).new_scan().plan_files()))

        rows = list(task.rows())
        self.assertEqual([r.file_path for r in rows], ["s3://bucket/data/a.parquet", "s3://bucket/data/c.parquet"])
        self.assertEqual([r.record_count for r in rows], [10, 30])
        for row in rows:
            self.assertIsInstance(row, DataFile)

    def test_rows_can_be_read_twice(self):
        writer = TableWriter(self.warehouse)
        entries = [manifest_entry_record(data_file_record(f"s3://bucket/data/{i}.parquet")) for i in range(5)]
        writer.commit([writer.add_manifest("manifest.avro", entries)])
        task = next(iter(self.files_table(writer).new_scan().plan_files()))

        self.assertEqual(list(task.rows()), list(task.rows()))

    def test_rows_decode_statistics(self):
        writer = TableWriter(self.warehouse, spec=REGION_SPEC)
        data_file = data_file_record(
            "s3://bucket/data/eu.parquet",
            partition={"region": "eu"},
            column_sizes={1: 100, 2: 200},
            value_counts={1: 10, 2: 10},
            null_value_counts={2: 1},
            lower_bounds={1: b"\x01\x00\x00\x00\x00\x00\x00\x00"},
            upper_bounds={1: b"\x09\x00\x00\x00\x00\x00\x00\x00"},
            split_offsets=[4, 512],
            sort_order_id=0,
        )
        writer.commit([writer.add_manifest("manifest.avro", [manifest_entry_record(data_file)])])
        task = next(iter(self.files_table(writer).new_scan().plan_files()))

        row = next(iter(task.rows()))
        self.assertEqual(row.partition, {"region": "eu"})
        self.assertEqual(row.column_sizes, {1: 100, 2: 200})
        self.assertEqual(row.null_value_counts, {2: 1})
        self.assertEqual(row.lower_bounds[1], b"\x01\x00\x00\x00\x00\x00\x00\x00")
        self.assertEqual(row.split_offsets, [4, 512])
        self.assertEqual(row.sort_order_id, 0)
        self.assertIsNone(row.nan_value_counts)
        self.assertEqual(row.file_format, FileFormat.PARQUET)

    def test_bad_manifest_fails_only_its_own_rows(self):
        writer = TableWriter(self.warehouse)
        good = writer.add_manifest("good.avro", [manifest_entry_record(data_file_record("s3://bucket/data/ok.parquet"))])
        bad = writer.add_manifest("bad.avro", [manifest_entry_record(data_file_record("s3://bucket/data/x.parquet"))])
        with open(bad["manifest_path"], "wb") as f:
            f.write(NOT_AVRO)
        writer.commit([bad, good])

        bad_task, good_task = list(self.files_table(writer).new_scan().plan_files())
        with self.assertRaises(DecodeError):
            list(bad_task.rows())
        self.assertEqual([r.file_path for r in good_task.rows()], ["s3://bucket/data/ok.parquet"])

    def test_unknown_manifest_record_fails_rows(self):
        writer = TableWriter(self.warehouse)
        entries = [manifest_entry_record(data_file_record("s3://bucket/data/a.parquet"))]
        manifest = writer.add_manifest("manifest.avro", entries)
        write_avro(manifest["manifest_path"], dict(manifest_avro_schema(), name="data_file_entry"), entries)
        writer.commit([manifest])
        task = next(iter(self.files_table(writer).new_scan().plan_files()))

        with self.assertRaises(DecodeError):
            list(task.rows())

    def test_missing_manifest_raises_file_not_found(self):
        writer = TableWriter(self.warehouse)
        manifest = writer.add_manifest("gone.avro", [manifest_entry_record(data_file_record("s3://bucket/data/a.parquet"))])
        writer.commit([manifest])
        task = next(iter(self.files_table(writer).new_scan().plan_files()))

        rows = task.rows()
        os.remove(manifest["manifest_path"])
        with self.assertRaises(FileNotFoundError):
            next(rows)

    def test_closing_rows_early(self):
        writer = TableWriter(self.warehouse)
        entries = [manifest_entry_record(data_file_record(f"s3://bucket/data/{i}.parquet")) for i in range(10)]
        writer.commit([writer.add_manifest("manifest.avro", entries)])
        task = next(iter(self.files_table(writer).new_scan().plan_files()))

        with closing(task.rows()) as rows:
            first = next(rows)
        self.assertEqual(first.file_path, "s3://bucket/data/0.parquet")
        self.assertEqual(len(list(task.rows())), 10)


class FilesTableRowsTest(DataFilesTableTestBase):
    """Tests for reading the whole files table."""

    def setUp(self):
        super().setUp()
        self.writer = TableWriter(self.warehouse, spec=REGION_SPEC)
        entries = [
            manifest_entry_record(data_file_record("s3://bucket/data/eu-1.parquet", record_count=5,
                                                   partition={"region": "eu"}, column_sizes={1: 8})),
            manifest_entry_record(data_file_record("s3://bucket/data/us-1.parquet", record_count=50,
                                                   partition={"region": "us"})),
        ]
        self.writer.commit([self.writer.add_manifest("manifest.avro", entries)])

    def test_rows_are_filtered_by_residual(self):
        scan = self.files_table(self.writer).new_scan().filter(greater_than("record_count", 10))
        self.assertEqual([r["file_path"] for r in scan.rows()], ["s3://bucket/data/us-1.parquet"])

    def test_rows_are_projected(self):
        scan = self.files_table(self.writer).new_scan().select(["file_path", "partition"])
        rows = list(scan.rows())
        self.assertEqual(rows[0], {"file_path": "s3://bucket/data/eu-1.parquet", "partition": {"region": "eu"}})

    def test_to_arrow(self):
        scan = self.files_table(self.writer).new_scan().select(
            ["file_path", "partition", "record_count", "column_sizes"])
        arrow_table = scan.to_arrow()

        self.assertEqual(arrow_table.num_rows, 2)
        self.assertEqual(arrow_table.column_names, ["file_path", "partition", "record_count", "column_sizes"])
        self.assertEqual(arrow_table.column("record_count").to_pylist(), [5, 50])
        self.assertEqual(arrow_table.column("partition").to_pylist(), [{"region": "eu"}, {"region": "us"}])
        self.assertEqual(arrow_table.column("column_sizes").to_pylist(), [[(1, 8)], None])

    def test_schema_json_is_valid(self):
        schema_json = json.loads(SchemaParser.to_json(self.files_table(self.writer).new_scan().schema()))
        self.assertEqual(schema_json["type"], "struct")
        self.assertEqual(schema_json["fields"][0]["name"], "file_path")


if __name__ == '__main__':
    unittest.main()
