"""Version control adapters."""
