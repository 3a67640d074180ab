"""Donor, sponsor and recurring-subscription aggregation for fundraising organizations."""
