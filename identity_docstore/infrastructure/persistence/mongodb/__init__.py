"""MongoDB document backend (Motor)."""
