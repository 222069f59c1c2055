"""Groundwater flow support code."""
