"""
DevLink Backend — Services Layer
==================================

What:  Business rules between the routes (HTTP) and the repositories (SQL).

Service Inventory:
    - ConnectionService:   Request/accept/reject/remove state machine
    - NotificationEmitter: Notification creation and the recipient's feed
    - NotificationHandler: Best-effort delivery of published events
    - SuggestionEngine:    "People you may know"
    - MessageService:      One-to-one conversations
    - UserEnricher:        Builds user DTOs for read paths

Services take repositories bound to one session and never commit except
where a side effect must observe committed state.
"""
