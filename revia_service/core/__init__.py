"""Core building blocks shared by all features."""
