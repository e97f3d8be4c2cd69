"""Shell adapters — subprocess execution."""
