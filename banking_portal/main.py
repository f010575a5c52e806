import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from .core.database import engine, Base, SessionLocal
from .core.config import settings
from .core.errors import AuthError
from .models.user import User  # noqa: F401
from .models.otp import OtpCode  # noqa: F401
from .models.session import WebSession  # noqa: F401
from .models.banking import Account, Transaction, BillPayment, ChequeOrder, ExternalAccount  # noqa: F401
from .routers.auth import router as auth_router
from .routers.accounts import router as accounts_router
from .routers.bill_payments import router as bill_payments_router
from .routers.cheque_orders import router as cheque_orders_router
from .routers.external_accounts import router as external_accounts_router
from .seed import seed_database

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# Configure CORS
raw_origins = settings.CORS_ORIGINS or "*"
origins = [o.strip() for o in raw_origins.split(",") if o.strip()] if isinstance(raw_origins, str) else raw_origins
allow_credentials = False if "*" in origins else True
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create tables
Base.metadata.create_all(bind=engine)

# Seed demo members if not exists
if settings.SEED_DEMO_DATA:
    with SessionLocal() as db:
        seed_database(db)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(bill_payments_router)
app.include_router(cheque_orders_router)
app.include_router(external_accounts_router)

@app.get("/")
def root():
    return {"status": "ok"}

@app.get("/health")
def health():
    return {"status": "healthy"}
