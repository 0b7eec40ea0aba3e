# -*- coding: utf-8 -*-
"""
localize-from-source
====================

Build-time localization pipeline for game mods: discovers marked string
literals in a disassembled mod assembly, keeps the keyed translation tables
up to date and merges translator submissions back into them.
"""

from .version import VERSION, APP_NAME

__all__ = ['VERSION', 'APP_NAME']
