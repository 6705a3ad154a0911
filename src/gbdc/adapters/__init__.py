# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Adapters for various integrations."""

from .log_adapters import FilePersistenceAdapter, PersistenceAdapter

__all__ = ("FilePersistenceAdapter", "PersistenceAdapter")
