"""Service layer: registry, presence, relationships, relay, sessions, persistence."""
