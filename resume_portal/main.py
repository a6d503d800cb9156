import logging
from datetime import datetime, timedelta
from typing import Optional

import psycopg2
import psycopg2.extras
from dotenv import load_dotenv
from fastapi import Cookie, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from jose import JWTError, jwt
from pydantic import BaseModel

from . import app_context
from .app.routes.resumes import router as resumes_router
from .settings import load_portal_config

load_dotenv()

CONFIG = load_portal_config()

logging.basicConfig(
    level=getattr(logging, CONFIG.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("resume_portal")

JWT_ALGORITHM = "HS256"
JWT_EXP_MINUTES = 60 * 24 * 7


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    plan_id: Optional[str] = None
    plan_name: Optional[str] = None
    plan_start: Optional[datetime] = None
    plan_expiry: Optional[datetime] = None
    created_at: Optional[datetime] = None


def get_conn():
    return psycopg2.connect(**CONFIG.db_params())


def create_access_token(*, subject: str, expires_delta: Optional[timedelta] = None) -> str:
    payload = {"sub": subject}
    if expires_delta is None:
        expires_delta = timedelta(minutes=JWT_EXP_MINUTES)
    payload["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(payload, CONFIG.jwt_secret_key, algorithm=JWT_ALGORITHM)


def get_user_by_id(user_id: str) -> Optional[UserOut]:
    with get_conn() as conn, conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
        cur.execute(
            """
            SELECT id, email, full_name, plan_id, plan_name, plan_start, plan_expiry, created_at
            FROM users
            WHERE id = %s
            """,
            (user_id,),
        )
        row = cur.fetchone()
    if not row:
        return None
    return UserOut(**dict(row))


def resolve_user_from_session_token(session_token: str) -> Optional[UserOut]:
    try:
        payload = jwt.decode(session_token, CONFIG.jwt_secret_key, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    return get_user_by_id(str(subject))


def get_current_user(
    session_token: Optional[str] = Cookie(None, alias=CONFIG.session_cookie_name),
) -> UserOut:
    if not session_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = resolve_user_from_session_token(session_token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


app = FastAPI(title="Resume Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CONFIG.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(resumes_router)

app_context.configure(
    get_conn=get_conn,
    get_current_user=get_current_user,
)


@app.get("/api/health")
def health():
    return {"ok": True}
