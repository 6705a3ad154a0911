# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Request resilience and form handling for the Great Beginnings Day Care site."""

__version__ = "0.1.0"
