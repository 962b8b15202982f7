"""Runtime - process-level concerns shared by every component."""
