"""Infrastructure: SQLModel engine and repository implementations."""
