# Routes package init
"""
TogetherLog Backend - API Routes Package
=========================================

Route Inventory:
    - workers.py:  POST /workers/compute-smart-page
                   POST /workers/reverse-geocode
                   POST /workers/compute-colors
                   POST /workers/process-photo
    - logs.py:     /api/logs, /api/logs/{log_id}
    - entries.py:  /api/logs/{log_id}/entries, /api/entries/{entry_id}, /api/tags
    - health.py:   GET /health

Routes stay thin: parse the request, call one service method, wrap the result.
"""
