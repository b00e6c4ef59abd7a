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
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Iterator, Optional, Tuple

from pyfilescan.expressions.expressions import AlwaysTrue, Expression, and_
from pyfilescan.read.scan_task import ScanTask
from pyfilescan.schema.schema import Schema
from pyfilescan.snapshot.snapshot import Snapshot
from pyfilescan.table.table_operations import TableOperations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableScanContext:
    """Options of a table scan; refined by copy, never mutated."""

    snapshot_id: Optional[int] = None
    row_filter: Expression = AlwaysTrue()
    case_sensitive: bool = True
    col_stats: bool = False
    selected_columns: Optional[Tuple[str, ...]] = None


class BaseTableScan(ABC):
    """
    Shared configuration and planning flow of table scans.

    Every refine method returns a new scan over the same table; the scan it
    was called on is left untouched.
    """

    def __init__(self, ops: TableOperations, table, schema: Schema,
                 context: TableScanContext = None):
        self.ops = ops
        self._table = table
        self._schema = schema
        self._context = context or TableScanContext()

    @abstractmethod
    def _new_refined_scan(self, ops: TableOperations, table, schema: Schema,
                          context: TableScanContext) -> "BaseTableScan":
        """Create a scan of the same kind with ``context``."""

    @abstractmethod
    def target_split_size(self) -> int:
        """Upper bound, in bytes, of the tasks produced by plan_tasks()."""

    @abstractmethod
    def _plan_files(self, ops: TableOperations, snapshot: Snapshot, row_filter: Expression,
                    case_sensitive: bool, col_stats: bool) -> Iterator[ScanTask]:
        """Plan the tasks reading ``snapshot``."""

    def table(self):
        return self._table

    def context(self) -> TableScanContext:
        return self._context

    def _refine(self, **changes) -> "BaseTableScan":
        return self._new_refined_scan(self.ops, self._table, self._schema, replace(self._context, **changes))

    def use_snapshot(self, snapshot_id: int) -> "BaseTableScan":
        if self._context.snapshot_id is not None:
            raise ValueError(f"Cannot override snapshot, already set to id={self._context.snapshot_id}")
        if self._table.snapshot(snapshot_id) is None:
            raise ValueError(f"Cannot find snapshot with ID {snapshot_id}")
        return self._refine(snapshot_id=snapshot_id)

    def as_of_time(self, timestamp_millis: int) -> "BaseTableScan":
        if self._context.snapshot_id is not None:
            raise ValueError(f"Cannot override snapshot, already set to id={self._context.snapshot_id}")
        snapshot = self.ops.snapshot_manager.earlier_or_equal_time_mills(timestamp_millis)
        if snapshot is None:
            raise ValueError(f"Cannot find a snapshot older than {timestamp_millis}")
        return self._refine(snapshot_id=snapshot.snapshot_id)

    def filter(self, expr: Expression) -> "BaseTableScan":
        return self._refine(row_filter=and_(self._context.row_filter, expr))

    def case_sensitive(self, case_sensitive: bool) -> "BaseTableScan":
        return self._refine(case_sensitive=case_sensitive)

    def include_column_stats(self) -> "BaseTableScan":
        return self._refine(col_stats=True)

    def select(self, columns: Iterable[str]) -> "BaseTableScan":
        return self._refine(selected_columns=tuple(columns))

    def filter_expression(self) -> Expression:
        return self._context.row_filter

    def is_case_sensitive(self) -> bool:
        return self._context.case_sensitive

    def schema(self) -> Schema:
        if self._context.selected_columns is None:
            return self._schema
        return self._schema.select(self._context.selected_columns, self._context.case_sensitive)

    def snapshot(self) -> Optional[Snapshot]:
        if self._context.snapshot_id is not None:
            snapshot = self._table.snapshot(self._context.snapshot_id)
            if snapshot is None:
                raise ValueError(f"Cannot find snapshot with ID {self._context.snapshot_id}")
            return snapshot
        return self._table.current_snapshot()

    def plan_files(self) -> Iterator[ScanTask]:
        """
        Plan the tasks of this scan.

        The snapshot is resolved now; files are opened and decoded lazily as
        the returned iterator is consumed.
        """
        snapshot = self.snapshot()
        if snapshot is None:
            logger.info("Scanning empty table %s", self._table)
            return iter(())

        logger.info(
            "Scanning table %s snapshot %s created at %s with filter %s",
            self._table, snapshot.snapshot_id,
            datetime.fromtimestamp(snapshot.timestamp_ms / 1000.0) if snapshot.timestamp_ms else None,
            self._context.row_filter,
        )
        return self._plan_files(self.ops, snapshot, self._context.row_filter,
                                self._context.case_sensitive, self._context.col_stats)

    def plan_tasks(self) -> Iterator[ScanTask]:
        split_size = self.target_split_size()
        for task in self.plan_files():
            yield from task.split(split_size)
