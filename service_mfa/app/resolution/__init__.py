"""
Status resolution package.

Orchestrates cache lookups, Duo pre-authentication calls and response
classification. Callers always receive a value: failures resolve to an
UNAVAILABLE account and the upstream authentication policy decides
whether to fail open or closed.
"""
