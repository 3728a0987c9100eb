# app/modules/router.py
from fastapi import APIRouter
from app.modules.drafting.api.router import v1 as drafting_router

router = APIRouter()
router.include_router(drafting_router)
