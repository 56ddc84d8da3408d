"""Services package — all business logic lives here, never in routers.

Files:
  steps.py             — ordered critical / best-effort step runner
  reconciler.py        — trade / region membership reconciliation with audit
  agency.py            — agency PATCH orchestration (fields + relations)
  compliance_state.py  — compliance document state machine
  compliance.py        — compliance upload / verify / reject / delete / settings
  storage.py           — S3-compatible object storage client
  notifications.py     — transactional email dispatcher

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
