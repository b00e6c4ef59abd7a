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
from typing import Iterator

from pyfilescan.common.file_io import FileIO
from pyfilescan.exceptions import DecodeError
from pyfilescan.manifest.avro_decoder import AvroDecoder, RecordKind
from pyfilescan.manifest.schema.data_file import DataFile
from pyfilescan.manifest.schema.manifest_entry import ManifestEntry

# 2 and 102 are the ids of the data_file and partition fields
MANIFEST_RENAMES = {
    "manifest_entry": RecordKind.MANIFEST_ENTRY,
    "r2": RecordKind.DATA_FILE,
    "r102": RecordKind.PARTITION_DATA,
    "partition": RecordKind.PARTITION_DATA,
}


class ManifestFileManager:
    """Reader for manifest files in Avro format using unified FileIO."""

    def __init__(self, file_io: FileIO, decoder: AvroDecoder = None):
        self.file_io = file_io
        self.decoder = decoder or AvroDecoder()

    def read_entries(self, manifest_path: str) -> Iterator[ManifestEntry]:
        """Lazily read every entry of a manifest, deleted ones included."""
        entries = self.decoder.read(self.file_io, manifest_path, name_remap=MANIFEST_RENAMES)
        try:
            for entry in entries:
                if not isinstance(entry, ManifestEntry):
                    raise DecodeError(manifest_path, f"expected a manifest entry, got {type(entry).__name__}")
                yield entry
        finally:
            entries.close()

    def read(self, manifest_path: str) -> Iterator[DataFile]:
        """Lazily read the live data files of a manifest, in file order."""
        entries = self.read_entries(manifest_path)
        try:
            for entry in entries:
                if entry.is_live():
                    yield entry.data_file
        finally:
            entries.close()
