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
import re
import time
from typing import Dict, List, Optional

from cachetools import LRUCache

from pyfilescan.common.file_io import FileIO
from pyfilescan.common.json_util import JSON
from pyfilescan.snapshot.snapshot import Snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "snapshot-"
LATEST = "LATEST"
EARLIEST = "EARLIEST"
_SNAPSHOT_FILE = re.compile(r'^snapshot-(\d+)$')


class SnapshotManager:
    """
    Locates and parses the snapshot files of one table.

    Snapshots live in ``{table}/snapshot/snapshot-{id}``; ``LATEST`` and the
    optional ``EARLIEST`` hint files hold an id each. Parsed snapshots are
    kept in an LRU cache.
    """

    DEFAULT_CACHE_SIZE = 100

    def __init__(self, table_path: str, file_io: FileIO, cache_size: int = DEFAULT_CACHE_SIZE):
        self.file_io = file_io
        self.snapshot_dir = f"{table_path.rstrip('/')}/snapshot"

        # committed snapshot files never change
        self._snapshots: LRUCache = LRUCache(maxsize=cache_size)
        self._hits = 0
        self._misses = 0

    def get_snapshot_path(self, snapshot_id: int) -> str:
        return f"{self.snapshot_dir}/{SNAPSHOT_PREFIX}{snapshot_id}"

    def _hint_path(self, hint: str) -> str:
        return f"{self.snapshot_dir}/{hint}"

    def get_latest_snapshot(self) -> Optional[Snapshot]:
        latest_id = self.get_latest_snapshot_id()
        return None if latest_id is None else self.get_snapshot_by_id(latest_id)

    def get_latest_snapshot_id(self) -> Optional[int]:
        """Id named by LATEST, or the highest listed id when there is no LATEST file."""
        if self.file_io.exists(self._hint_path(LATEST)):
            return int(self.read_latest_file())
        snapshot_ids = self.list_snapshot_ids()
        return snapshot_ids[-1] if snapshot_ids else None

    def read_latest_file(self, max_retries: int = 5) -> str:
        """
        Read the id stored in LATEST.

        A writer replacing LATEST can leave it momentarily empty or missing;
        the read is retried ``max_retries`` times before falling back to
        listing the snapshot directory.

        Raises:
            RuntimeError: If LATEST stays unreadable and no snapshot file exists
        """
        latest_path = self._hint_path(LATEST)
        for attempt in range(1, max_retries + 1):
            try:
                content = self.file_io.read_file_utf8(latest_path).strip()
            except OSError as e:
                logger.debug("Attempt %d to read %s failed: %s", attempt, latest_path, e)
                content = ""
            if content:
                return content
            if attempt < max_retries:
                time.sleep(0.001)

        snapshot_ids = self.list_snapshot_ids()
        if not snapshot_ids:
            raise RuntimeError(f"No snapshot content found in {self.snapshot_dir}")
        logger.info("Could not read %s, using highest listed snapshot %d", latest_path, snapshot_ids[-1])
        return str(snapshot_ids[-1])

    def list_snapshot_ids(self) -> List[int]:
        """Ids of every snapshot file present, ascending."""
        snapshot_ids = []
        for status in self.file_io.list_status(self.snapshot_dir):
            found = _SNAPSHOT_FILE.match(status.path.rsplit('/', 1)[-1])
            if found:
                snapshot_ids.append(int(found.group(1)))
        snapshot_ids.sort()
        return snapshot_ids

    def try_get_earliest_snapshot(self) -> Optional[Snapshot]:
        earliest_path = self._hint_path(EARLIEST)
        if self.file_io.exists(earliest_path):
            return self.get_snapshot_by_id(int(self.file_io.read_file_utf8(earliest_path).strip()))
        snapshot_ids = self.list_snapshot_ids()
        return self.get_snapshot_by_id(snapshot_ids[0]) if snapshot_ids else None

    def earlier_or_equal_time_mills(self, timestamp: int) -> Optional[Snapshot]:
        """
        The newest snapshot committed at or before ``timestamp`` (epoch millis).

        Binary search over the listed snapshot ids; commit times grow with the
        id, and expired ids are simply absent from the listing.

        Returns:
            The matching snapshot, or None if every snapshot is newer
        """
        snapshot_ids = self.list_snapshot_ids()
        low, high = 0, len(snapshot_ids) - 1
        match = None
        while low <= high:
            middle = (low + high) // 2
            candidate = self.get_snapshot_by_id(snapshot_ids[middle])
            if candidate is None or candidate.timestamp_ms <= timestamp:
                # a file expired since the listing is older than anything left
                if candidate is not None:
                    match = candidate
                low = middle + 1
            else:
                high = middle - 1
        return match

    def get_snapshot_by_id(self, snapshot_id: int) -> Optional[Snapshot]:
        """
        Parse ``snapshot-{snapshot_id}``, from the cache when it was read before.

        Returns:
            The snapshot, or None if no snapshot file exists for the id
        """
        cached = self._snapshots.get(snapshot_id)
        if cached is not None:
            self._hits += 1
            return cached

        self._misses += 1
        path = self.get_snapshot_path(snapshot_id)
        if not self.file_io.exists(path):
            return None
        snapshot = JSON.from_json(self.file_io.read_file_utf8(path), Snapshot)
        self._snapshots[snapshot_id] = snapshot
        return snapshot

    def get_cache_stats(self) -> Dict[str, int]:
        return {
            "cache_hits": self._hits,
            "cache_misses": self._misses,
            "cache_size": len(self._snapshots),
        }
