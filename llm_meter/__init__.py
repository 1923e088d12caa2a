"""Tier configuration and usage metering service."""
