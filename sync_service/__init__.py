"""
Sync Service

HTTP and WebSocket surface over the career_sync reconciliation layer.
"""
