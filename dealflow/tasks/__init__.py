"""Background workers: Celery app, outbox delivery and handler registry."""
