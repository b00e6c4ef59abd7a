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
Scan tasks: units of planned, independently executable scan work.

Every task offers the ScanTask capabilities (file, spec, start, length,
residual, split). Tasks whose rows are produced by the task itself rather
than read from the referenced file's bytes are DataTasks and add ``rows()``.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional

from pyfilescan.expressions.expressions import Expression
from pyfilescan.expressions.residual_evaluator import ResidualEvaluator
from pyfilescan.manifest.schema.data_file import DataFile
from pyfilescan.schema.partition_spec import PartitionSpec, PartitionSpecParser
from pyfilescan.schema.schema import Schema, SchemaParser


class ScanTask(ABC):

    @abstractmethod
    def file(self) -> DataFile:
        """The file this task reads."""

    @abstractmethod
    def spec(self) -> PartitionSpec:
        """The partition spec the file was written with."""

    @abstractmethod
    def start(self) -> int:
        """Byte offset in the file where this task starts."""

    @abstractmethod
    def length(self) -> int:
        """Number of bytes of the file this task covers."""

    @abstractmethod
    def residual(self) -> Expression:
        """The filter rows of this task still have to pass."""

    @abstractmethod
    def split(self, split_size: int) -> List["ScanTask"]:
        """Tasks covering this one, each at most ``split_size`` bytes where possible."""

    def is_data_task(self) -> bool:
        return False


class DataTask(ScanTask):

    @abstractmethod
    def rows(self) -> Iterator[Any]:
        """
        A fresh lazy iterator over the rows of this task.

        The iterator owns an open stream until it is exhausted or closed;
        close it (or use ``contextlib.closing``) when stopping early.
        """

    def is_data_task(self) -> bool:
        return True


class BaseFileScanTask(ScanTask):
    """Scan of one whole file; schema and spec are frozen as JSON at creation."""

    def __init__(self, file: DataFile, schema_string: str, spec_string: str,
                 residuals: ResidualEvaluator):
        self._file = file
        self._schema_string = schema_string
        self._spec_string = spec_string
        self._residuals = residuals
        self._schema: Optional[Schema] = None
        self._spec: Optional[PartitionSpec] = None

    def file(self) -> DataFile:
        return self._file

    def schema(self) -> Schema:
        if self._schema is None:
            self._schema = SchemaParser.from_json(self._schema_string)
        return self._schema

    def spec(self) -> PartitionSpec:
        if self._spec is None:
            self._spec = PartitionSpecParser.from_json(self._spec_string)
        return self._spec

    def schema_string(self) -> str:
        return self._schema_string

    def spec_string(self) -> str:
        return self._spec_string

    def start(self) -> int:
        return 0

    def length(self) -> int:
        return self._file.file_size_in_bytes

    def residual(self) -> Expression:
        return self._residuals.residual_for(self._file.partition)

    def split(self, split_size: int) -> List[ScanTask]:
        return [self]

    def __repr__(self) -> str:
        return f"BaseFileScanTask(file={self._file.file_path}, length={self.length()})"
