# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Error record persistence adapters."""

from .persistence import FilePersistenceAdapter, PersistenceAdapter

__all__ = ("FilePersistenceAdapter", "PersistenceAdapter")
