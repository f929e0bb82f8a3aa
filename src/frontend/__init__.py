"""Qt adapters around the import engine."""
