"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from pontaj.api.v1.endpoints import (assessments, assignments, auth,
                                     dashboard, employees, leave_requests,
                                     reports, settings, timesheet,
                                     timesheet_options, validation)

api_router = APIRouter()

# Auth (login, refresh, user management)
api_router.include_router(auth.router)

# Employees and duplicate checks
api_router.include_router(employees.router)
api_router.include_router(validation.router)

# Daily timesheet: checklist options, admin grid, self-service
api_router.include_router(timesheet_options.router)
api_router.include_router(timesheet.router)

# Leave requests
api_router.include_router(leave_requests.router)

# Tests and their daily assignments
api_router.include_router(assessments.router)
api_router.include_router(assignments.router)

# System settings
api_router.include_router(settings.router)

# Reports, exports, dashboard, health, status
api_router.include_router(reports.router)
api_router.include_router(dashboard.router)
