from fastapi import APIRouter

from timeleave.api.accounts import accounts_router
from timeleave.api.approvals import approvals_router, audit_router
from timeleave.api.leave_requests import leave_router
from timeleave.api.notifications import notifications_router
from timeleave.api.sessions import sessions_router

api_router = APIRouter()
api_router.include_router(sessions_router)
api_router.include_router(leave_router)
api_router.include_router(approvals_router)
api_router.include_router(audit_router)
api_router.include_router(accounts_router)
api_router.include_router(notifications_router)
