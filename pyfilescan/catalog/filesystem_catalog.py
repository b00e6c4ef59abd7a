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
from typing import Union

from pyfilescan.common.file_io import FileIO
from pyfilescan.common.identifier import Identifier
from pyfilescan.table.base_table import BaseTable
from pyfilescan.table.metadata.base_metadata_table import BaseMetadataTable
from pyfilescan.table.metadata.metadata_table_utils import \
    create_metadata_table
from pyfilescan.table.table_operations import TableOperations

logger = logging.getLogger(__name__)

DB_SUFFIX = ".db"


class FileSystemCatalog:
    """Catalog of tables laid out as ``{warehouse}/{database}.db/{table}``."""

    def __init__(self, warehouse: str, file_io: FileIO = None):
        self.warehouse = warehouse.rstrip('/')
        self.file_io = file_io or FileIO(self.warehouse)

    def get_database_path(self, database: str) -> str:
        return f"{self.warehouse}/{database}{DB_SUFFIX}"

    def get_table_path(self, identifier: Identifier) -> str:
        return f"{self.get_database_path(identifier.get_database_name())}/{identifier.get_table_name()}"

    def get_table(self, identifier: Union[str, Identifier]) -> Union[BaseTable, BaseMetadataTable]:
        """
        Load a table, or one of its metadata tables when the name carries a
        ``$<type>`` suffix (``db.orders$files``).

        Raises:
            FileNotFoundError: If the table has no metadata file
            ValueError: If the name or the metadata table type is invalid
        """
        if not isinstance(identifier, Identifier):
            identifier = Identifier.from_string(identifier)

        table_path = self.get_table_path(identifier)
        logger.debug("Loading table %s from %s", identifier.get_full_name(), table_path)
        ops = TableOperations(table_path, self.file_io)
        ops.current()
        table = BaseTable(ops, f"{identifier.get_database_name()}.{identifier.get_table_name()}")

        if identifier.is_system_table():
            return create_metadata_table(table, identifier.get_system_table_name())
        return table
