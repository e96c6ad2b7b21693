from fastapi import APIRouter

from siteledger.api.approvals import approvals_router
from siteledger.api.attendance import attendance_sheet_router, labors_router
from siteledger.api.entities import entity_routers
from siteledger.api.journal import journal_router
from siteledger.api.notifications import notifications_router
from siteledger.api.projects import accounts_router, projects_router
from siteledger.api.records import record_settlements_router
from siteledger.api.reports import reports_router

api_router = APIRouter()
api_router.include_router(projects_router)
api_router.include_router(accounts_router)
api_router.include_router(labors_router)
# Fixed paths go before the generated /{entity_id} routes.
api_router.include_router(attendance_sheet_router)
api_router.include_router(record_settlements_router)
api_router.include_router(reports_router)
for router in entity_routers:
    api_router.include_router(router)
api_router.include_router(approvals_router)
api_router.include_router(journal_router)
api_router.include_router(notifications_router)
