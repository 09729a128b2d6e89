"""
Jobs Domain

CRUD, lifecycle and checklist endpoints for appliance jobs. Saving a job
keeps its calendar event and reminders in step with the recomputed times.

Structure:
```
domain/jobs/
├── __init__.py
├── schemas.py     # Request/response models
├── repository.py  # Database access
├── service.py     # Orchestration (calendar, reminders, drive time)
└── router.py      # FastAPI endpoints
```
"""

from .router import router

__all__ = ["router"]
