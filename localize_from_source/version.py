# -*- coding: utf-8 -*-
"""Version information for localize-from-source."""

VERSION = "1.2.0"
APP_NAME = "LfsCompiler"
