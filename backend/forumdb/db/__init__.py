"""Database layer: engine/session context, ORM models, query builders, repositories."""
