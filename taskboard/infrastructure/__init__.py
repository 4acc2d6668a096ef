"""Infrastructure layer: PostgreSQL pool and task store implementations."""
