"""v1 router package — all /api/v1/* endpoints live here.

Files:
  agencies.py    — PATCH /admin/agencies/{id} (fields, trades, regions)
  compliance.py  — /admin/agencies/{id}/compliance (settings) and compliance/* (document upload, review, delete)

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to staffing_api/services/.
"""
