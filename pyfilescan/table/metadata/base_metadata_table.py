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
from abc import ABC, abstractmethod
from typing import Dict, Optional

from pyfilescan.common.file_io import FileIO
from pyfilescan.schema.partition_spec import UNPARTITIONED_SPEC, PartitionSpec
from pyfilescan.schema.schema import Schema
from pyfilescan.snapshot.snapshot import Snapshot
from pyfilescan.table.base_table import BaseTable
from pyfilescan.table.table_operations import TableOperations


class BaseMetadataTable(ABC):
    """
    Read-only table derived from the metadata of a base table.

    Metadata tables are never partitioned themselves; snapshots, properties
    and storage access are those of the base table.
    """

    def __init__(self, ops: TableOperations, table: BaseTable, name: str):
        self.ops = ops
        self._table = table
        self._name = name

    @abstractmethod
    def metadata_table_type(self):
        """The MetadataTableType of this table."""

    @abstractmethod
    def schema(self) -> Schema:
        """Row schema; derived from the base table on every call."""

    @abstractmethod
    def location(self) -> str:
        """Location of the metadata file backing the current rows."""

    @abstractmethod
    def new_scan(self):
        """Create a new scan of this table."""

    def name(self) -> str:
        return self._name

    def table(self) -> BaseTable:
        return self._table

    def operations(self) -> TableOperations:
        return self.ops

    def io(self) -> FileIO:
        return self._table.io()

    def spec(self) -> PartitionSpec:
        return UNPARTITIONED_SPEC

    def properties(self) -> Dict[str, str]:
        return self._table.properties()

    def current_snapshot(self) -> Optional[Snapshot]:
        return self._table.current_snapshot()

    def snapshot(self, snapshot_id: int) -> Optional[Snapshot]:
        return self._table.snapshot(snapshot_id)

    def refresh(self) -> None:
        self._table.refresh()

    def __repr__(self) -> str:
        return self._name
