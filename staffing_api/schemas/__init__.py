"""Pydantic schemas package.

Folder intent:
  common.py      — ApiModel base + HealthResponse (all schemas inherit ApiModel)
  agency.py      — agency PATCH body and agency / trade / region response models
  compliance.py  — compliance row, review request and document URL schemas
"""
