"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from workforce.api.v1.endpoints import attendance, payroll, reports, roster

api_router = APIRouter()

# Employees, branches
api_router.include_router(roster.router)

# Day records, employee history
api_router.include_router(attendance.router)

# Rollups, trends, health
api_router.include_router(reports.router)

# Salary processing
api_router.include_router(payroll.router)
