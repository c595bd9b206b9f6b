"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from dispatch.api.auth import router as auth_router
from dispatch.api.clients import router as clients_router
from dispatch.api.vehicles import router as vehicles_router
from dispatch.api.plans import router as plans_router
from dispatch.api.operators import router as operators_router
from dispatch.api.agents import router as agents_router
from dispatch.api.registrations import router as registrations_router
from dispatch.api.tickets import router as tickets_router
from dispatch.api.finance import router as finance_router
from dispatch.api.dashboard import router as dashboard_router
from dispatch.api.lookup import router as lookup_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(clients_router)
api_router.include_router(vehicles_router)
api_router.include_router(plans_router)
api_router.include_router(operators_router)
api_router.include_router(agents_router)
api_router.include_router(registrations_router)
api_router.include_router(tickets_router)
api_router.include_router(finance_router)
api_router.include_router(dashboard_router)
api_router.include_router(lookup_router)
