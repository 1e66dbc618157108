"""Notifications app package.

Subscribes to booking domain events after commit and delivers them through
Celery: guest e-mails plus an in-app feed for resort staff. Delivery is
best effort and never affects the booking that triggered it.
"""
