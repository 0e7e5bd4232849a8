"""
Response classification package.

Turns raw Duo admin API responses into account statuses. The classifier
never raises: every failure is reported as an explicit ``ErrorKind`` on
the returned ``Classification`` so callers can branch on it.
"""
