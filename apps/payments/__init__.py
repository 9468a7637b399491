"""Payments app package: payment intents for holds and the gateway webhook."""
