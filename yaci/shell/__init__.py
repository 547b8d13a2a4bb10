"""Host-side helpers that do not need a window: rendering and ROM services."""
