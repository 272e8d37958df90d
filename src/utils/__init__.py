"""Utilities package for the BOM Cost Tracker."""
