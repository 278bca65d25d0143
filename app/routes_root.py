# routes_root.py
"""
Root / basic endpoints (health, landing).
"""

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
def read_root():
    """
    Simple landing endpoint.
    """
    return {"message": "Ledger API is running"}


@router.get("/health")
def health():
    return {"status": "ok"}
