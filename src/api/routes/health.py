from fastapi import APIRouter

from src.infrastructure.database.connection import check_database_connection
from src.infrastructure.messaging.rabbitmq_publisher import check_rabbitmq_connection

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    db_status = await check_database_connection()
    rabbitmq_status = await check_rabbitmq_connection()

    overall = "healthy" if db_status == "connected" and rabbitmq_status == "connected" else "degraded"

    return {
        "status": overall,
        "database": db_status,
        "rabbitmq": rabbitmq_status,
    }
