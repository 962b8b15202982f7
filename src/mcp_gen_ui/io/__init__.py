"""IO - persistence of generated artifacts."""
