# -*- coding: utf-8 -*-
"""
Core Package
============

String discovery, table reconciliation, ingestion and the runtime translator.
"""
