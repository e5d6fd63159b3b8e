import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from shiftdesk.auth import authenticate
from shiftdesk.calendar_view import (
    open_days,
    registered_days,
    scheduled_days,
    shifts_for_day,
)
from shiftdesk.config import Settings, configure_logging
from shiftdesk.database import InMemoryDocumentStore
from shiftdesk.day_edit import DaySlot, add_shift, load_day, save_day
from shiftdesk.employees import NewEmployee, add_employee, list_employees
from shiftdesk.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from shiftdesk.live import BoardRegistry, ShiftBoard
from shiftdesk.models import Role, ShiftType
from shiftdesk.request_queue import accept_request, reject_request
from shiftdesk.session import Session, SessionStore, require_role
from shiftdesk.submission import SubmitStatusBoard, request_shift

logger = logging.getLogger(__name__)

router = APIRouter()

NowFn = Callable[[], datetime]
SleepFn = Callable[[float], Awaitable[None]]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(CamelModel):
    restaurant_code: str = Field(alias="restaurantCode")
    username: str
    password: str
    role: Role = Role.EMPLOYEE


class RequestDecision(CamelModel):
    employee_id: str = Field(alias="employeeId")
    shift_id: str = Field(alias="shiftId")


class NewShiftRequest(CamelModel):
    date: str
    shift_type: ShiftType = Field(alias="shiftType")
    needed_employees: int = Field(alias="neededEmployees")


class DayEditRequest(CamelModel):
    date: str
    slots: list[DaySlot]


_ERROR_STATUS: dict[type[DomainError], int] = {
    ValidationError: 422,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
}


async def domain_error_handler(_request: Request, exc: DomainError) -> JSONResponse:
    status_code = next(
        (code for kind, code in _ERROR_STATUS.items() if isinstance(exc, kind)),
        400,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def current_session(
    request: Request,
    x_session_token: str | None = Header(default=None),
) -> Session:
    sessions: SessionStore = request.app.state.sessions
    session = sessions.get(x_session_token) if x_session_token else None
    if session is None:
        raise AuthenticationError("Not logged in or session expired")
    return session


async def manager_session(session: Session = Depends(current_session)) -> Session:
    require_role(session, Role.MANAGER)
    return session


async def employee_session(session: Session = Depends(current_session)) -> Session:
    require_role(session, Role.EMPLOYEE)
    return session


async def _board(request: Request, session: Session) -> ShiftBoard:
    boards: BoardRegistry = request.app.state.boards
    return await boards.get(session.restaurant_id)


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> dict:
    try:
        session = await authenticate(
            request.app.state.store,
            restaurant_code=body.restaurant_code,
            username=body.username,
            password=body.password,
            role=body.role,
        )
    except StoreError:
        logger.exception("Error during login")
        raise HTTPException(
            status_code=503, detail="An error occurred during login."
        )

    token = request.app.state.sessions.open(session)
    return {
        "token": token,
        "restaurantId": session.restaurant_id,
        "role": session.role.value,
        "username": session.username,
    }


@router.post("/logout")
async def logout(
    request: Request, x_session_token: str | None = Header(default=None)
) -> dict[str, str]:
    if x_session_token:
        request.app.state.sessions.close(x_session_token)
    return {"status": "logged_out"}


@router.get("/session")
async def read_session(session: Session = Depends(current_session)) -> dict:
    return {
        "restaurantId": session.restaurant_id,
        "role": session.role.value,
        "username": session.username,
    }


@router.get("/manager/queue")
async def manager_queue(
    request: Request, session: Session = Depends(manager_session)
) -> dict:
    board = await _board(request, session)
    return {
        "requests": [r.model_dump(by_alias=True) for r in board.request_queue()],
        "fullyStaffed": board.fully_staffed(),
    }


async def _decide(
    body: RequestDecision,
    request: Request,
    session: Session,
    decide: Callable[..., Awaitable[bool]],
    done_status: str,
) -> dict:
    board = await _board(request, session)
    record = next(
        (
            r
            for r in board.request_queue()
            if r.shift_id == body.shift_id and r.employee_id == body.employee_id
        ),
        None,
    )
    if record is None:
        raise HTTPException(status_code=404, detail="Request not found in queue")

    ok = await decide(
        record, session=session, store=request.app.state.store, board=board
    )
    return {
        "status": done_status if ok else "failed",
        "shiftId": record.shift_id,
        "employeeId": record.employee_id,
    }


@router.post("/manager/requests/accept")
async def accept(
    body: RequestDecision,
    request: Request,
    session: Session = Depends(manager_session),
) -> dict:
    return await _decide(body, request, session, accept_request, "accepted")


@router.post("/manager/requests/reject")
async def reject(
    body: RequestDecision,
    request: Request,
    session: Session = Depends(manager_session),
) -> dict:
    return await _decide(body, request, session, reject_request, "rejected")


@router.get("/manager/calendar")
async def manager_calendar(
    request: Request, session: Session = Depends(manager_session)
) -> dict:
    board = await _board(request, session)
    return {
        "scheduledDays": scheduled_days(board.shifts),
        "fullyStaffed": board.fully_staffed(),
    }


@router.get("/manager/days")
async def read_day(
    date: str, request: Request, session: Session = Depends(manager_session)
) -> dict:
    board = await _board(request, session)
    return {
        "date": date,
        "slots": [s.model_dump(by_alias=True) for s in load_day(board.shifts, date)],
    }


@router.put("/manager/days")
async def write_day(
    body: DayEditRequest,
    request: Request,
    session: Session = Depends(manager_session),
) -> dict:
    result = await save_day(
        body.date, body.slots, session=session, store=request.app.state.store
    )
    return result.model_dump()


@router.post("/manager/shifts", status_code=201)
async def create_shift(
    body: NewShiftRequest,
    request: Request,
    session: Session = Depends(manager_session),
) -> dict[str, str]:
    shift_id = await add_shift(
        body.date,
        body.shift_type,
        body.needed_employees,
        session=session,
        store=request.app.state.store,
    )
    return {"id": shift_id}


@router.get("/manager/employees")
async def read_employees(
    request: Request, session: Session = Depends(manager_session)
) -> list[dict]:
    employees = await list_employees(
        session=session, store=request.app.state.store
    )
    return [e.model_dump(by_alias=True) for e in employees]


@router.post("/manager/employees", status_code=201)
async def create_employee(
    body: NewEmployee,
    request: Request,
    session: Session = Depends(manager_session),
) -> dict[str, str]:
    employee_id = await add_employee(
        body, session=session, store=request.app.state.store
    )
    return {"id": employee_id}


@router.get("/employee/calendar")
async def employee_calendar(
    request: Request, session: Session = Depends(employee_session)
) -> dict:
    board = await _board(request, session)
    return {
        "openDays": open_days(board.shifts),
        "registeredDays": registered_days(board.shifts, session.employee_id or ""),
    }


@router.get("/employee/shifts")
async def employee_shifts(
    date: str, request: Request, session: Session = Depends(employee_session)
) -> dict:
    board = await _board(request, session)
    statuses: SubmitStatusBoard = request.app.state.submit_statuses
    employee_id = session.employee_id or ""
    return {
        "date": date,
        "shifts": [
            {
                "id": s.id,
                "shiftType": s.shift_type.value,
                "neededEmployees": s.needed_employees,
                "requested": employee_id in s.requests,
                "status": statuses.get(employee_id, s.id),
            }
            for s in shifts_for_day(board.shifts, date)
        ],
    }


@router.post("/employee/shifts/{shift_id}/request")
async def employee_request_shift(
    shift_id: str,
    request: Request,
    session: Session = Depends(employee_session),
) -> dict[str, str]:
    status = await request_shift(
        shift_id,
        session=session,
        store=request.app.state.store,
        statuses=request.app.state.submit_statuses,
    )
    return {"shiftId": shift_id, "status": status.value}


@router.get("/employee/shifts/{shift_id}/status")
async def employee_request_status(
    shift_id: str,
    request: Request,
    session: Session = Depends(employee_session),
) -> dict:
    statuses: SubmitStatusBoard = request.app.state.submit_statuses
    return {
        "shiftId": shift_id,
        "status": statuses.get(session.employee_id or "", shift_id),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.boards.close_all()
    app.state.submit_statuses.cancel_all()


def create_app(
    settings: Settings | None = None,
    *,
    store: InMemoryDocumentStore | None = None,
    now_fn: NowFn | None = None,
    sleep_fn: SleepFn | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="shiftdesk", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or InMemoryDocumentStore()

    app.state.now_fn = now_fn or (lambda: datetime.now(UTC))
    app.state.sleep_fn = sleep_fn or asyncio.sleep

    app.state.sessions = SessionStore(
        ttl=timedelta(minutes=settings.session_ttl_minutes),
        now_fn=lambda: app.state.now_fn(),
    )
    app.state.boards = BoardRegistry(app.state.store)
    app.state.submit_statuses = SubmitStatusBoard(
        clear_after=settings.status_clear_seconds,
        sleep_fn=lambda seconds: app.state.sleep_fn(seconds),
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.include_router(router)
    return app
