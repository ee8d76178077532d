"""Shipment tracking service."""
