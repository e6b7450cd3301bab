# -*- coding: utf-8 -*-
"""Dependency injection."""

from deposit_refund_relay.DI.container import Container

__all__ = ["Container"]
