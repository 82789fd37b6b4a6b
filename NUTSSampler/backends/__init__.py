# -*- coding: utf-8 -*-

__all__ = ["DefaultBackend"]

from .default import DefaultBackend
