"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer used by the Postgres adapters and
the account handler. Each repository extends BaseRepository and is exposed as
a module-level singleton.

Modules:
    notification_repository: 알림 조회/읽음 처리 (Recent fetch and read-marking)
    task_repository: 작업 조회 (Task lookup for enrichment)
    identity_repository: 인증 계정 생성/삭제 (Identity creation and removal)
    user_repository: 역할 조회, 프로필 upsert (Role lookup and profile upsert)
"""
