"""
Duo admin API package.

Contains everything needed to talk to the Duo Auth API:

- signer: HMAC request signing with the integration and secret keys.
- transport: httpx-backed transport executing plain and signed requests.
- client: Builds the ping and pre-authentication requests.

Key points:
- One attempt per call; retry policy belongs to the caller.
- Responses are returned as raw text; interpretation lives in
  app.classification.
"""
