"""Finances app package.

Holds the Payment ledger: every payment attempt recorded against a booking,
whether it came from the online gateway callback or was taken at the
property. Booking payment status transitions write these rows.
"""
