"""Feishu Bitable access -- HTTP client, TTL caches, field maps and person lookup.

Provides BitableClient (tenant token + record/field endpoints over one shared
httpx client), FieldMapCache (label -> field id per table) and PersonResolver
(display name -> user id per person column).
"""
