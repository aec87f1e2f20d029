"""Domain layer with the back office business logic.

- **benefits**: eligibility and payout engine, claim state machine, claim
  storage and the claim service
- **members**: member and contribution tables and the lookups the claim
  service depends on
- **webhooks**: subscriptions, payload signing, registry and the dispatcher
  that delivers domain events to subscribers
- **events**: domain event names and after-commit publication

Domain code depends on protocols for its collaborators so it can be tested
without a database or network.
"""
