from fastapi import APIRouter, Depends

from ..db import ConnectionManager, get_connection

router = APIRouter(tags=["health"])


@router.get("/")
def root(conn: ConnectionManager = Depends(get_connection)):
    return {"message": "Volunteer API is running", "dbConnected": conn.is_ready}


@router.get("/health")
def health(conn: ConnectionManager = Depends(get_connection)):
    return {"status": "ok" if conn.is_ready else "degraded", "store": conn.state.value}
