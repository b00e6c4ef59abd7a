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
The ``files`` metadata table.

Its rows are the live data files of a snapshot, one per manifest entry, read
straight from the snapshot's manifests. Planning produces one task per
manifest listed in the snapshot's manifest list.
"""

import logging
from contextlib import closing
from typing import Any, Dict, Iterator, List

import pyarrow as pa

from pyfilescan.common.file_io import FileIO
from pyfilescan.exceptions import NoSnapshotError
from pyfilescan.expressions.evaluator import Evaluator
from pyfilescan.expressions.expressions import Expression
from pyfilescan.expressions.residual_evaluator import ResidualEvaluator
from pyfilescan.manifest.manifest_file_manager import ManifestFileManager
from pyfilescan.manifest.manifest_list_manager import ManifestListManager
from pyfilescan.manifest.schema import data_file
from pyfilescan.manifest.schema.data_file import DataFile
from pyfilescan.manifest.schema.manifest_file import ManifestFile
from pyfilescan.read.scan_task import BaseFileScanTask, DataTask, ScanTask
from pyfilescan.read.table_scan import BaseTableScan, TableScanContext
from pyfilescan.schema.arrow_conversion import rows_to_pyarrow
from pyfilescan.schema.partition_spec import (UNPARTITIONED_SPEC,
                                              PartitionSpec,
                                              PartitionSpecParser)
from pyfilescan.schema.schema import Schema, SchemaParser
from pyfilescan.snapshot.snapshot import Snapshot
from pyfilescan.table.base_table import BaseTable
from pyfilescan.table.metadata.base_metadata_table import BaseMetadataTable
from pyfilescan.table.metadata.metadata_table_type import MetadataTableType
from pyfilescan.table.table_operations import TableOperations

logger = logging.getLogger(__name__)

TARGET_SPLIT_SIZE = 32 * 1024 * 1024  # 32 MB


class DataFilesTable(BaseMetadataTable):
    """A table of the data files of a base table's snapshot."""

    def __init__(self, ops: TableOperations, table: BaseTable, name: str = None):
        super().__init__(ops, table, name or f"{table.name()}.files")

    def metadata_table_type(self) -> MetadataTableType:
        return MetadataTableType.FILES

    def schema(self) -> Schema:
        partition_type = self._table.spec().partition_type(self._table.schema())
        return Schema(*data_file.get_type(partition_type).fields)

    def location(self) -> str:
        snapshot = self._table.current_snapshot()
        if snapshot is None:
            raise NoSnapshotError(self._table.name())
        return snapshot.manifest_list_location()

    def new_scan(self) -> "FilesTableScan":
        return FilesTableScan(self.ops, self._table, self.schema())


class FilesTableScan(BaseTableScan):
    """Plans one ManifestReadTask per manifest of the scanned snapshot."""

    def __init__(self, ops: TableOperations, table: BaseTable, schema: Schema,
                 context: TableScanContext = None):
        super().__init__(ops, table, schema, context)

    def _new_refined_scan(self, ops: TableOperations, table: BaseTable, schema: Schema,
                          context: TableScanContext) -> "FilesTableScan":
        return FilesTableScan(ops, table, schema, context)

    def target_split_size(self) -> int:
        return TARGET_SPLIT_SIZE

    def _plan_files(self, ops: TableOperations, snapshot: Snapshot, row_filter: Expression,
                    case_sensitive: bool, col_stats: bool) -> Iterator[ScanTask]:
        manifests = ManifestListManager(ops.io()).read(snapshot.manifest_list_location())
        schema_string = SchemaParser.to_json(self.schema())
        spec_string = PartitionSpecParser.to_json(UNPARTITIONED_SPEC)
        residuals = ResidualEvaluator.unpartitioned(row_filter)
        return self._manifest_tasks(ops.io(), manifests, schema_string, spec_string, residuals)

    @staticmethod
    def _manifest_tasks(io: FileIO, manifests: Iterator[ManifestFile], schema_string: str,
                        spec_string: str, residuals: ResidualEvaluator) -> Iterator[ScanTask]:
        try:
            for manifest in manifests:
                yield ManifestReadTask(
                    io, BaseFileScanTask(DataFile.from_manifest(manifest), schema_string, spec_string, residuals))
        finally:
            manifests.close()

    def rows(self) -> Iterator[Dict[str, Any]]:
        """
        Read the rows of every planned task as dicts keyed by column name.

        Rows are filtered by their task's residual and projected to the
        selected columns.
        """
        struct = self._schema.as_struct()
        columns = self.schema().column_names()
        for task in self.plan_files():
            evaluator = Evaluator(struct, task.residual(), self.is_case_sensitive())
            with closing(task.rows()) as task_rows:
                for row in task_rows:
                    values = row.to_dict()
                    if evaluator.eval(values):
                        yield {name: values[name] for name in columns}

    def to_arrow(self) -> pa.Table:
        return rows_to_pyarrow(self.rows(), self.schema())


class ManifestReadTask(DataTask):
    """Rows of one manifest: the live data files it tracks."""

    def __init__(self, io: FileIO, file_task: BaseFileScanTask):
        self._io = io
        self._file_task = file_task

    def rows(self) -> Iterator[DataFile]:
        logger.debug("Reading data files from manifest %s", self._file_task.file().file_path)
        return ManifestFileManager(self._io).read(self._file_task.file().file_path)

    def file(self) -> DataFile:
        return self._file_task.file()

    def spec(self) -> PartitionSpec:
        return self._file_task.spec()

    def schema(self) -> Schema:
        return self._file_task.schema()

    def start(self) -> int:
        return 0

    def length(self) -> int:
        return self._file_task.length()

    def residual(self) -> Expression:
        return self._file_task.residual()

    def split(self, split_size: int) -> List[ScanTask]:
        return [self]

    def __repr__(self) -> str:
        return f"ManifestReadTask({self._file_task.file().file_path})"
