#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Group consecutive polishes that share a query id.

The input stream must already be grouped by query id; nothing here sorts.
If the same id reappears after a different one, the two runs are reported as
separate groups.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bestpolish.polish import Polish

Group = Tuple[Polish, ...]

DEFAULT_CAPACITY = 8388608


class GroupAccumulator:
    """
    Buffer for the polishes of the currently open query group.

    Parameters
    ----------
    capacity : int
        Initial capacity hint. The buffer doubles its capacity whenever an
        append would exceed it and never shrinks.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f'capacity must be positive, got {capacity}')
        self.capacity = capacity
        self._buffer: List[Polish] = []
        self._query_id: Optional[int] = None

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def query_id(self) -> Optional[int]:
        """Query id of the open group, or None when nothing is buffered."""
        return self._query_id if self._buffer else None

    def _append(self, polish: Polish) -> None:
        if len(self._buffer) >= self.capacity:
            self.capacity *= 2
            logging.debug(
                'Group buffer for query=%d grown to %d', polish.query_id, self.capacity
            )
        self._buffer.append(polish)
        self._query_id = polish.query_id

    def _close(self) -> Group:
        group = tuple(self._buffer)
        self._buffer.clear()
        return group

    def observe(self, polish: Polish) -> Optional[Group]:
        """
        Add a polish to the stream.

        Returns
        -------
        tuple of Polish or None
            The previous group when ``polish`` starts a new query id,
            otherwise None.
        """
        closed = None
        if self._buffer and polish.query_id != self._query_id:
            closed = self._close()
        self._append(polish)
        return closed

    def flush(self) -> Optional[Group]:
        """Close and return the open group at end of input (None if empty)."""
        if not self._buffer:
            return None
        return self._close()
