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
from typing import Dict, Optional

from pyfilescan.common.file_io import FileIO
from pyfilescan.schema.partition_spec import PartitionSpec
from pyfilescan.schema.schema import Schema
from pyfilescan.snapshot.snapshot import Snapshot
from pyfilescan.table.table_operations import TableOperations


class BaseTable:
    """A table loaded from a table directory; read-only."""

    def __init__(self, ops: TableOperations, name: str):
        self.ops = ops
        self.table_name = name

    def name(self) -> str:
        return self.table_name

    def operations(self) -> TableOperations:
        return self.ops

    def io(self) -> FileIO:
        return self.ops.io()

    def refresh(self) -> None:
        self.ops.refresh()

    def schema(self) -> Schema:
        return self.ops.current().schema

    def spec(self) -> PartitionSpec:
        return self.ops.current().spec

    def properties(self) -> Dict[str, str]:
        return self.ops.current().properties

    def location(self) -> str:
        return self.ops.current().location

    def current_snapshot(self) -> Optional[Snapshot]:
        return self.ops.snapshot_manager.get_latest_snapshot()

    def snapshot(self, snapshot_id: int) -> Optional[Snapshot]:
        return self.ops.snapshot_manager.get_snapshot_by_id(snapshot_id)

    def __repr__(self) -> str:
        return f"BaseTable({self.table_name})"
