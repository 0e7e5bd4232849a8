"""
MFA Service package for the access layer.

Resolves a user's MFA eligibility (auth / allow / deny / enroll) by asking
the Duo admin API, and keeps the answer in a short-lived cache so the
authentication pipeline is not exposed to provider latency on every login.

- app.main: Application entrypoint that wires routes and lifecycle.
- app.duo: Request building, signing and transport towards Duo.
- app.classification: Mapping of provider responses onto account status.
- app.caching: Bounded, expiring account status cache.
- app.resolution: The status resolution service tying the above together.

Design notes:
- Module import must not perform network calls.
- Status resolution never raises; failures surface as UNAVAILABLE.
"""
