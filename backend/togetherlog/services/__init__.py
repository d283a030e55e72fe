# Services package init
"""
TogetherLog Backend - Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the database.
How:   Each service is a module-level singleton that receives the request's
       AsyncSession per call; none holds per-request state.

Service Inventory:
    - smart_page:        pure rules engine (layout, theme, sprinkles)
    - rate_limiter:      minimum-interval gate for outbound provider calls
    - geocoding_service: Nominatim reverse geocoding with LRU cache
    - color_service:     placeholder dominant-color palette
    - photo_service:     public URL and placeholder metadata for photos
    - log_service:       log CRUD with entry counts
    - entry_service:     entry/tag CRUD and worker write-backs
    - worker_service:    orchestrates the /workers/* jobs
"""
