"""Configuration — package list loading."""
