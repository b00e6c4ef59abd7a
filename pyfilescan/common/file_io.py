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
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import pyarrow.fs as pafs

logger = logging.getLogger(__name__)


@dataclass
class FileStatus:
    path: str
    size: Optional[int]
    is_dir: bool


class FileIO:
    """Storage access for table files backed by ``pyarrow.fs``.

    Plain paths and ``file://`` URIs use the local filesystem; other schemes
    are resolved with ``FileSystem.from_uri`` once, on first use.
    """

    def __init__(self, warehouse: str = None, filesystem: pafs.FileSystem = None):
        self.warehouse = warehouse
        self._filesystem = filesystem
        self._filesystems: Dict[str, pafs.FileSystem] = {}

    def _resolve(self, path: str) -> Tuple[pafs.FileSystem, str]:
        if self._filesystem is not None:
            return self._filesystem, self._strip_scheme(path)

        scheme = urlparse(path).scheme
        if scheme in ("", "file") or len(scheme) == 1:
            return pafs.LocalFileSystem(), self._strip_scheme(path)

        if scheme not in self._filesystems:
            filesystem, _ = pafs.FileSystem.from_uri(path)
            self._filesystems[scheme] = filesystem
        return self._filesystems[scheme], self._strip_scheme(path)

    @staticmethod
    def _strip_scheme(path: str) -> str:
        parsed = urlparse(path)
        if parsed.scheme in ("", "file") or len(parsed.scheme) == 1:
            local_path = parsed.path if parsed.scheme == "file" else path
            return os.path.abspath(local_path)
        return f"{parsed.netloc}{parsed.path}"

    def new_input_stream(self, path: str):
        """Open ``path`` for sequential reading; the caller closes the stream."""
        filesystem, resolved = self._resolve(path)
        logger.debug("Opening input stream for %s", path)
        return filesystem.open_input_stream(resolved)

    def new_output_stream(self, path: str):
        filesystem, resolved = self._resolve(path)
        parent = resolved.rsplit('/', 1)[0]
        if parent and parent != resolved:
            filesystem.create_dir(parent, recursive=True)
        return filesystem.open_output_stream(resolved)

    def exists(self, path: str) -> bool:
        filesystem, resolved = self._resolve(path)
        info = filesystem.get_file_info(resolved)
        return info.type != pafs.FileType.NotFound

    def get_file_size(self, path: str) -> int:
        filesystem, resolved = self._resolve(path)
        info = filesystem.get_file_info(resolved)
        if info.type == pafs.FileType.NotFound:
            raise FileNotFoundError(f"File not found: {path}")
        return info.size

    def list_status(self, path: str) -> List[FileStatus]:
        filesystem, resolved = self._resolve(path)
        selector = pafs.FileSelector(resolved, allow_not_found=True, recursive=False)
        return [
            FileStatus(path=info.path, size=info.size, is_dir=info.type == pafs.FileType.Directory)
            for info in filesystem.get_file_info(selector)
        ]

    def read_file_utf8(self, path: str) -> str:
        with self.new_input_stream(path) as input_stream:
            return input_stream.read().decode('utf-8')

    def overwrite_file_utf8(self, path: str, content: str) -> None:
        with self.new_output_stream(path) as output_stream:
            output_stream.write(content.encode('utf-8'))

    def delete_quietly(self, path: str) -> None:
        filesystem, resolved = self._resolve(path)
        try:
            filesystem.delete_file(resolved)
        except (FileNotFoundError, OSError) as e:
            logger.debug("Ignoring failure to delete %s: %s", path, e)
