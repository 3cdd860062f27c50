"""Cryptocurrency price sampling, increase detection and target-price email alerts."""
