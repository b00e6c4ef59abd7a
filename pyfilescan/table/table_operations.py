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
from typing import Optional

from pyfilescan.common.file_io import FileIO
from pyfilescan.snapshot.snapshot_manager import SnapshotManager
from pyfilescan.table.table_metadata import METADATA_FILE, TableMetadata

logger = logging.getLogger(__name__)


class TableOperations:
    """Read access to the metadata of one table directory."""

    def __init__(self, table_path: str, file_io: FileIO):
        self.table_path = table_path.rstrip('/')
        self.file_io = file_io
        self.snapshot_manager = SnapshotManager(self.table_path, file_io)
        self._current: Optional[TableMetadata] = None

    def io(self) -> FileIO:
        return self.file_io

    def metadata_location(self) -> str:
        return f"{self.table_path}/{METADATA_FILE}"

    def current(self) -> TableMetadata:
        if self._current is None:
            return self.refresh()
        return self._current

    def refresh(self) -> TableMetadata:
        location = self.metadata_location()
        if not self.file_io.exists(location):
            raise FileNotFoundError(f"Table metadata not found: {location}")
        logger.debug("Loading table metadata from %s", location)
        self._current = TableMetadata.from_json(self.file_io.read_file_utf8(location))
        return self._current
