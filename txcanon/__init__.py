"""
txcanon — Solana transaction fetch and canonicalisation core.

Fetches transactions by signature from a pool of JSON-RPC providers with
pacing, retry and a durable local cache, then normalises the provider
response (jsonParsed or raw json, legacy or v0) into a canonical,
provider-agnostic instruction list for downstream renderers.
"""

__version__ = "0.1.0"
