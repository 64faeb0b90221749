from fastapi import APIRouter

from scorecard.api.v1.endpoints import auth, evaluations, forms, health, subjects

router = APIRouter(prefix="/api/v1")

router.include_router(evaluations.router)
router.include_router(subjects.router)
router.include_router(forms.router)
router.include_router(auth.router)
router.include_router(health.router)
