"""
DevLink Backend — API Routes Package
======================================

Route Inventory:
    - connections.py:    /api/connections (requests, accept/reject, network,
                         suggestions)
    - notifications.py:  /api/notifications (feed, unread count, mark read,
                         delete)
    - messages.py:       /api/messages (conversations, history, send)
    - health.py:         GET /health

Routes are thin: they resolve the caller, call one service method and
return its DTO. Errors are raised by services and turned into responses by
the handlers registered in main.py.
"""
