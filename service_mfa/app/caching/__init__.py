"""
Account status caching package.

Short-lived, bounded cache of resolved account statuses. Entries expire a
few seconds after they are written so the provider is consulted again
soon after a user's state changes, while bursts of logins for the same
user are absorbed locally.
"""
