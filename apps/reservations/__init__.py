"""Reservations app package.

Soft holds against availability counters: create, commit on payment,
release on cancel, and expiry by the background sweeper.
"""
