"""Users app package.

Accounts that call the booking API. Booking rows reference users by UUID,
so the primary key here is a UUID as well.
"""
