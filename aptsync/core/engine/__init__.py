"""Engine — the package reconciler."""
