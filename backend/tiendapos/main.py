import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tiendapos.core.config import settings
from tiendapos.core.database import init_db
from tiendapos.core.errors import PersistenceError, PosError
from tiendapos.routes.auth import router as auth_router
from tiendapos.routes.cashbox import router as cashbox_router
from tiendapos.routes.cashcuts import router as cashcuts_router
from tiendapos.routes.cashmovements import router as cashmovements_router
from tiendapos.routes.customers import router as customers_router
from tiendapos.routes.health import router as health_router
from tiendapos.routes.inventory import router as inventory_router
from tiendapos.routes.products import router as products_router
from tiendapos.routes.reports import router as reports_router
from tiendapos.routes.sales import router as sales_router
from tiendapos.routes.users import router as users_router


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="TiendaPOS API", version="0.1.0")

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(PosError)
    async def pos_error_handler(request: Request, exc: PosError):
        if isinstance(exc, PersistenceError):
            logger.error("%s %s -> %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(users_router, prefix="/users", tags=["users"])
    app.include_router(products_router, prefix="/products", tags=["products"])
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
    app.include_router(customers_router, prefix="/customers", tags=["customers"])
    app.include_router(sales_router, prefix="/sales", tags=["sales"])
    app.include_router(cashmovements_router, prefix="/cashmovements", tags=["cashmovements"])
    app.include_router(cashcuts_router, prefix="/cashcuts", tags=["cashcuts"])
    app.include_router(cashbox_router, prefix="/cashbox", tags=["cashbox"])
    app.include_router(reports_router, prefix="/reports", tags=["reports"])

    # En dev/test las tablas se crean sin Alembic
    init_db()

    return app


app = create_app()
