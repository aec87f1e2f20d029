"""Outbound webhooks: subscriptions, signing and delivery."""
