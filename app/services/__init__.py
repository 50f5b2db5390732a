"""서비스 패키지 — 알림 클라이언트 코어와 요청 처리 로직.

Service package — The notification client core (feed, enrichment, store,
presentation, acknowledgement, session lifecycle, manager) and the logic
behind the two function endpoints (account creation, mail relay).
The core depends only on the ports in ``app.services.ports``.
"""
