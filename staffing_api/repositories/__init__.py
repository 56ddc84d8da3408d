"""Repositories package — the only layer that issues SQL.

Files:
  base.py        — BaseRepository, dialect upsert helper, StoreError translation
  agency.py      — Agency and Profile lookups / partial updates
  reference.py   — Trade / Region lookups and agency membership join rows
  audit.py       — Append-only profile edit trail
  compliance.py  — Per-(agency, type) compliance status rows
"""
