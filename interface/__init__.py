"""Host interfaces: REST API and terminal game."""
