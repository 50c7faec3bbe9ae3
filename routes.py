"""API Routes for expenses"""
from fastapi import APIRouter, HTTPException, Depends, Request
from typing import Annotated
from services import expenses_service
from services.expense_store import ExpenseStore
from services.expenses_service import InvalidExpenseError
from models.expense import ExpenseListResponse, ExpenseResponse, ErrorResponse
from utils.id_generator import TimestampIdGenerator
from slowapi.util import get_remote_address
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

EXPENSES_PATH = "/expenses"
ALLOWED_METHODS = ["GET", "POST"]
REJECTED_METHODS = ["PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE"]
INTERNAL_ERROR_MESSAGE = "Internal Server Error"

# --- Dependency Functions ---
def get_expense_store(request: Request) -> ExpenseStore:
    """Dependency to get the expense store from the application state."""
    store = getattr(request.app.state, "expense_store", None)
    if store is None:
        logger.error("Expense store not found in application state.")
        raise HTTPException(status_code=503, detail="Expense store not available.")
    return store

def get_id_generator(request: Request) -> TimestampIdGenerator:
    generator = getattr(request.app.state, "id_generator", None)
    if generator is None:
        logger.error("Id generator not found in application state.")
        raise HTTPException(status_code=503, detail="Expense store not available.")
    return generator

def enforce_rate_limit(request: Request) -> None:
    """Router-wide dependency hitting the app's slowapi limiter once per request."""
    limiter = getattr(request.app.state, "limiter", None)
    rate_limits = getattr(request.app.state, "rate_limits", [])
    if limiter is None or not limiter.enabled or not rate_limits:
        return
    client = get_remote_address(request)
    for rate_limit in rate_limits:
        if not limiter.limiter.hit(rate_limit, "api", client):
            logger.warning(f"Rate limit {rate_limit} exceeded for {client}.")
            raise HTTPException(status_code=429, detail=f"Rate limit exceeded: {rate_limit}")

# Type hints for the dependencies
ExpenseStoreDep = Annotated[ExpenseStore, Depends(get_expense_store)]
IdGeneratorDep = Annotated[TimestampIdGenerator, Depends(get_id_generator)]

ERROR_RESPONSES = {500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}

# --- API Routes ---

@router.get(EXPENSES_PATH, response_model=ExpenseListResponse, responses=ERROR_RESPONSES, summary="List Expenses", description="Retrieves every recorded expense in the order it was created.")
async def list_expenses(store: ExpenseStoreDep) -> ExpenseListResponse:
    logger.info("GET /expenses endpoint called.")
    try:
        expenses = expenses_service.get_all_expenses(store)
        return ExpenseListResponse(count=len(expenses), data=expenses)
    except Exception as e:
        logger.exception(f"Unexpected error fetching expenses: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_MESSAGE)

@router.post(
    EXPENSES_PATH,
    status_code=201,
    response_model=ExpenseResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, **ERROR_RESPONSES},
    summary="Create Expense",
    description="Validates a JSON body with amount, description, category and date, then records it.",
)
async def create_expense(request: Request, store: ExpenseStoreDep, id_generator: IdGeneratorDep) -> ExpenseResponse:
    """
    Reads the body directly so that a JSON parse failure is always reported
    before any field validation.
    """
    logger.info("POST /expenses endpoint called.")
    try:
        body = expenses_service.parse_expense_body(await request.body())
        expense = expenses_service.create_expense(store, body, id_generator)
        return ExpenseResponse(data=expense)
    except InvalidExpenseError as ve:
        logger.warning(f"Rejected expense: {ve}")
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        logger.exception(f"Unexpected error creating expense: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_MESSAGE)

@router.api_route(EXPENSES_PATH, methods=REJECTED_METHODS, include_in_schema=False)
async def reject_method(request: Request):
    logger.warning(f"{request.method} /expenses rejected.")
    raise HTTPException(
        status_code=405,
        detail=f"Method {request.method} Not Allowed",
        headers={"Allow": ", ".join(ALLOWED_METHODS)},
    )

@router.get("/health", summary="Health Check")
async def health(store: ExpenseStoreDep):
    """Liveness probe that also reports how many records are held in memory."""
    return {"success": True, "status": "ok", "count": store.count()}
