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
from pyfilescan.manifest.schema.manifest_file import (MANIFEST_FILE_TYPE,
                                                      ManifestFile)

# 508 is the id of the partition summary element; iceberg-style writers name
# its record "r508", others after the "partitions" field.
MANIFEST_LIST_RENAMES = {
    "manifest_file": RecordKind.MANIFEST_FILE,
    "partitions": RecordKind.PARTITION_FIELD_SUMMARY,
    "r508": RecordKind.PARTITION_FIELD_SUMMARY,
}


class ManifestListManager:
    """Decodes a snapshot's manifest list into ManifestFile records."""

    def __init__(self, file_io: FileIO, decoder: AvroDecoder = None):
        self.file_io = file_io
        self.decoder = decoder or AvroDecoder()

    def read(self, manifest_list_location: str) -> Iterator[ManifestFile]:
        """
        Lazily read the manifests listed at ``manifest_list_location``.

        Records are decoded without container reuse: each ManifestFile stays
        valid after the iterator advances. Every call reopens the file.
        """
        manifests = self.decoder.read(
            self.file_io,
            manifest_list_location,
            target_type=MANIFEST_FILE_TYPE,
            name_remap=MANIFEST_LIST_RENAMES,
            reuse_containers=False,
        )
        try:
            for manifest in manifests:
                if not isinstance(manifest, ManifestFile):
                    raise DecodeError(manifest_list_location,
                                      f"expected a manifest file, got {type(manifest).__name__}")
                yield manifest
        finally:
            manifests.close()
