# -*- coding: utf-8 -*-
"""
Utilities Package
=================

Logging, configuration, encoding, JSON and git helpers.
"""
