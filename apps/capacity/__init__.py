"""Capacity app package.

This app owns per-day (optionally per-slot) capacity: the administrator's
defaults and date-ranged overrides, the resolver that turns them into an
effective number, and the availability counters that every reservation is
checked against.
"""
