"""Catalog app package.

Holds the bookable inventory of the resort: cottages, packages and safari
types. The catalog is read-mostly; the booking core reads it through
``DjangoCatalog`` and only admin users edit it.
"""
