# Schemas package init
"""
TogetherLog Backend - API Schemas
==================================

Pydantic request/response models, one module per router:
    - common.py:   errors, health, messages, path-id parsing
    - logs.py:     /api/logs
    - entries.py:  /api/entries, /api/logs/{id}/entries, /api/tags
    - workers.py:  /workers/*
"""
