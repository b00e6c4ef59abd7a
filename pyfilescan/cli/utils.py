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
Helpers for the pyfilescan CLI: filter and snapshot-position parsing, and
row formatters (JSON Lines, JSON array, CSV, ASCII table).
"""

import csv
import json
import re
import sys
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, TextIO, Tuple

from pyfilescan.expressions.expressions import (Expression, and_, equal,
                                                greater_than,
                                                greater_than_or_equal,
                                                less_than, less_than_or_equal,
                                                not_equal, starts_with)

_FILTER_PATTERN = re.compile(r'^(\w+)(>=|<=|!=|>|<|=|~)(.+)$')

_OPERATORS = {
    '=': equal,
    '!=': not_equal,
    '>': greater_than,
    '>=': greater_than_or_equal,
    '<': less_than,
    '<=': less_than_or_equal,
}


def parse_filter_expr(expr: str) -> Tuple[str, str, str]:
    """
    Split a filter like ``record_count>=10`` into (column, operator, value).

    Operators: ``=``, ``!=``, ``>``, ``>=``, ``<``, ``<=`` and ``~`` (prefix).

    Raises:
        ValueError: If the expression does not match ``<column><op><value>``
    """
    match = _FILTER_PATTERN.match(expr)
    if not match:
        raise ValueError(f"Invalid filter expression: {expr}")
    return match.groups()


def _typed(value: str) -> Any:
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    return value


def build_filter_expression(column: str, operator: str, value: str) -> Expression:
    if operator == '~':
        return starts_with(column, value)
    if operator not in _OPERATORS:
        raise ValueError(f"Unsupported operator: {operator}")
    return _OPERATORS[operator](column, _typed(value))


def parse_filters(filter_exprs: Optional[List[str]]) -> Optional[Expression]:
    """AND together every filter in ``filter_exprs``; None when there are none."""
    if not filter_exprs:
        return None
    expressions = [build_filter_expression(*parse_filter_expr(e)) for e in filter_exprs]
    if len(expressions) == 1:
        return expressions[0]
    return and_(*expressions)


def parse_timestamp(ts_str: str) -> int:
    """
    Milliseconds since epoch for ``-1h`` / ``-30m`` / ``-7d`` (relative to now),
    ``2024-01-15T10:30:00`` or ``2024-01-15``.
    """
    relative = re.match(r'^-(\d+)([hdm])$', ts_str)
    if relative:
        amount, unit = int(relative.group(1)), relative.group(2)
        delta = {'h': timedelta(hours=amount), 'm': timedelta(minutes=amount), 'd': timedelta(days=amount)}[unit]
        return int((datetime.now() - delta).timestamp() * 1000)

    for fmt in ('%Y-%m-%dT%H:%M:%S', '%Y-%m-%d'):
        try:
            return int(datetime.strptime(ts_str, fmt).timestamp() * 1000)
        except ValueError:
            continue
    raise ValueError(f"Invalid timestamp: {ts_str}")


def _snapshot_at(ts_millis: int, snapshot_manager) -> int:
    snapshot = snapshot_manager.earlier_or_equal_time_mills(ts_millis)
    if snapshot is None:
        raise ValueError(f"No snapshot at or before {datetime.fromtimestamp(ts_millis / 1000.0)}")
    return snapshot.id


def parse_position(pos: str, snapshot_manager) -> Optional[int]:
    """
    Resolve a snapshot position to a snapshot ID; None means the latest.

    Positions: ``latest``, ``earliest``, ``12345``, ``snapshot:12345``,
    ``time:<timestamp>`` or a bare timestamp (see parse_timestamp()).
    A time selects the last snapshot committed at or before it.
    """
    if pos == 'latest':
        return None
    if pos == 'earliest':
        snapshot = snapshot_manager.try_get_earliest_snapshot()
        return snapshot.id if snapshot else None
    if pos.startswith('snapshot:'):
        return int(pos.split(':', 1)[1])
    if pos.startswith('time:'):
        return _snapshot_at(parse_timestamp(pos.split(':', 1)[1]), snapshot_manager)
    if pos.isdigit():
        return int(pos)
    try:
        ts = parse_timestamp(pos)
    except ValueError:
        raise ValueError(
            f"Invalid position: {pos}. Expected: earliest, latest, snapshot ID, "
            f"relative time (-1h, -30m, -7d), or ISO date/datetime"
        ) from None
    return _snapshot_at(ts, snapshot_manager)


def to_printable(value: Any) -> Any:
    """Make a files-table value JSON friendly: bytes as hex, map keys as strings."""
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if isinstance(value, dict):
        return {str(k): to_printable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_printable(v) for v in value]
    return value


# -----------------------------------------------------------------------------
# Output Formatters
# -----------------------------------------------------------------------------

class OutputFormatter(ABC):

    def __init__(self, output: TextIO = None):
        self.output = output or sys.stdout

    @abstractmethod
    def write(self, row: Dict[str, Any]) -> None:
        """Write a single row."""

    def close(self) -> None:
        """Finish the output; called once after the last row."""


class JsonLinesFormatter(OutputFormatter):

    def write(self, row: Dict[str, Any]) -> None:
        print(json.dumps(to_printable(row), default=str), file=self.output)


class JsonArrayFormatter(OutputFormatter):

    def __init__(self, output: TextIO = None):
        super().__init__(output)
        self.count = 0

    def write(self, row: Dict[str, Any]) -> None:
        print('[' if self.count == 0 else ',', file=self.output)
        print(f'  {json.dumps(to_printable(row), default=str)}', end='', file=self.output)
        self.count += 1

    def close(self) -> None:
        print('[]' if self.count == 0 else '\n]', file=self.output)


class CsvFormatter(OutputFormatter):

    def __init__(self, output: TextIO = None):
        super().__init__(output)
        self.writer: Optional[csv.DictWriter] = None

    def write(self, row: Dict[str, Any]) -> None:
        if self.writer is None:
            self.writer = csv.DictWriter(self.output, fieldnames=list(row.keys()), extrasaction='ignore')
            self.writer.writeheader()
        self.writer.writerow({
            k: '' if v is None else (json.dumps(to_printable(v)) if isinstance(v, (dict, list)) else str(v))
            for k, v in row.items()
        })


class TableFormatter(OutputFormatter):
    """ASCII table; rows are buffered until close(), so pair it with --limit on big tables."""

    def __init__(self, output: TextIO = None, max_col_width: int = 30):
        super().__init__(output)
        self.max_col_width = max_col_width
        self.rows: List[Dict[str, Any]] = []

    def write(self, row: Dict[str, Any]) -> None:
        self.rows.append({k: '' if v is None else str(to_printable(v)) for k, v in row.items()})

    def _cell(self, value: str) -> str:
        if len(value) > self.max_col_width:
            return value[:self.max_col_width - 3] + '...'
        return value

    def close(self) -> None:
        if not self.rows:
            return
        columns = list(self.rows[0].keys())
        widths = {
            col: max([len(col)] + [len(self._cell(row.get(col, ''))) for row in self.rows])
            for col in columns
        }
        separator = '+' + '+'.join('-' * (widths[col] + 2) for col in columns) + '+'

        print(separator, file=self.output)
        print('|' + '|'.join(f' {col:{widths[col]}} ' for col in columns) + '|', file=self.output)
        print(separator, file=self.output)
        for row in self.rows:
            cells = [f' {self._cell(row.get(col, "")):{widths[col]}} ' for col in columns]
            print('|' + '|'.join(cells) + '|', file=self.output)
        print(separator, file=self.output)


FORMATTERS = {
    'jsonl': JsonLinesFormatter,
    'json': JsonArrayFormatter,
    'csv': CsvFormatter,
    'table': TableFormatter,
}


def get_formatter(format_name: str, output: TextIO = None) -> OutputFormatter:
    if format_name not in FORMATTERS:
        raise ValueError(
            f"Unknown output format: {format_name}. "
            f"Supported formats: {', '.join(FORMATTERS)}"
        )
    return FORMATTERS[format_name](output)
