# backend/main.py
import os
import logging
from contextlib import asynccontextmanager
from typing import List, Optional
from dotenv import load_dotenv
from fastapi import FastAPI, Depends, Request, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from starlette.middleware.cors import CORSMiddleware
from pydantic import BaseModel, EmailStr, Field

from database import create_db_and_tables, dispose_engine, get_session
from models import User, UserRead, UserProfile, ContentRead, Content
from auth import create_access_token, get_current_user_id, hash_password, verify_password
from errors import AppError, InvalidInput, InternalError, NotFound
from services import content_service, email_service, otp_service, share_service

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(levelname)s:     %(name)s - %(message)s",
)
logger = logging.getLogger("second_brain")

CLIENT_URL = os.getenv("CLIENT_URL", "*")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up and creating database tables...")
    await create_db_and_tables()
    logger.info("Startup complete.")
    yield
    await dispose_engine()
    logger.info("Shutdown complete.")

app = FastAPI(title="Second Brain API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware, allow_origins=[CLIENT_URL], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

# --- Error Handlers ---
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content={"message": "Invalid request"})
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid {field}: {first.get('msg')}" if field else f"Invalid request: {first.get('msg')}"
    return JSONResponse(status_code=400, content={"message": message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})

# --- Pydantic Models ---
class OTPRequest(BaseModel): email: Optional[EmailStr] = None
class SignupRequest(BaseModel): username: Optional[str] = None; email: Optional[EmailStr] = None; password: Optional[str] = None; otp: Optional[str] = None
class LoginRequest(BaseModel): email: Optional[EmailStr] = None; password: Optional[str] = None
class AuthResponse(BaseModel): message: str; token: str; user: UserRead
class MessageResponse(BaseModel): message: str
class ShareLinkResponse(BaseModel): message: str; hash: str

class TagInput(BaseModel):
    title: str = Field(min_length=1)

class ContentCreateRequest(BaseModel):
    title: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[List[TagInput]] = None

class ContentUpdateRequest(ContentCreateRequest):
    pass

def _public(content: Content) -> ContentRead:
    return ContentRead.model_validate(content)

async def _find_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()

# --- API Routes ---
@app.get("/")
async def read_root():
    return {"message": "Second Brain backend is running!"}

# Auth
@app.post("/api/auth/request-otp", response_model=MessageResponse)
async def request_otp(request: OTPRequest, session: AsyncSession = Depends(get_session)):
    if not request.email:
        raise InvalidInput("Email is required")
    if await _find_user_by_email(session, request.email):
        raise InvalidInput("Email already registered")
    otp = otp_service.otp_store.request_code(request.email)
    try:
        await email_service.send_otp_email(request.email, otp)
    except Exception:
        otp_service.otp_store.discard(request.email)
        logger.exception("Error sending OTP to %s", request.email)
        raise InternalError("Error sending OTP")
    return MessageResponse(message="OTP sent to email")

@app.post("/api/auth/signup", response_model=AuthResponse, status_code=201)
async def signup(request: SignupRequest, session: AsyncSession = Depends(get_session)):
    if not (request.username and request.email and request.password and request.otp):
        raise InvalidInput("All fields are required")
    if not otp_service.otp_store.verify_code(request.email, request.otp):
        raise InvalidInput("Invalid OTP")
    if await _find_user_by_email(session, request.email):
        raise InvalidInput("Email already registered")
    user = User(
        username=request.username, email=request.email,
        password=await run_in_threadpool(hash_password, request.password), isVerified=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("User %s signed up", user.id)
    token = create_access_token(user.id)
    return AuthResponse(message="Signup successful", token=token, user=UserRead.model_validate(user))

@app.post("/api/auth/login", response_model=AuthResponse)
async def login(request: LoginRequest, session: AsyncSession = Depends(get_session)):
    if not (request.email and request.password):
        raise InvalidInput("All fields are required")
    user = await _find_user_by_email(session, request.email)
    if user is None:
        raise InvalidInput("User not found")
    if not await run_in_threadpool(verify_password, request.password, user.password):
        raise InvalidInput("Invalid credentials")
    token = create_access_token(user.id)
    return AuthResponse(message="Login successful", token=token, user=UserRead.model_validate(user))

# Content
@app.post("/api/content", response_model=ContentRead, status_code=201)
async def create_content(
    request: ContentCreateRequest,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    content = await content_service.create_content(
        session, user_id, title=request.title, type_=request.type,
        description=request.description, link=request.link, image=request.image,
        tag_titles=[tag.title for tag in request.tags] if request.tags else None,
    )
    return _public(content)

@app.get("/api/content", response_model=List[ContentRead])
async def get_user_content(user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    return [_public(c) for c in await content_service.list_content(session, user_id)]

@app.get("/api/content/type/{content_type}", response_model=List[ContentRead])
async def get_content_by_type(content_type: str, user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    return [_public(c) for c in await content_service.list_content_by_type(session, user_id, content_type)]

@app.get("/api/content/search", response_model=List[ContentRead])
async def search_content(
    query: Optional[str] = Query(default=None),
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    return [_public(c) for c in await content_service.search_content(session, user_id, query)]

@app.put("/api/content/{content_id}", response_model=ContentRead)
async def update_content(
    content_id: int,
    request: ContentUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    changes = request.model_dump(exclude_none=True, exclude={"tags"})
    tag_titles = [tag.title for tag in request.tags] if request.tags is not None else None
    content = await content_service.update_content(session, user_id, content_id, changes, tag_titles)
    return _public(content)

@app.delete("/api/content/{content_id}", response_model=MessageResponse)
async def delete_content(content_id: int, user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    await content_service.delete_content(session, user_id, content_id)
    return MessageResponse(message="Content deleted successfully")

# Share links
@app.post("/api/share/link", response_model=ShareLinkResponse, status_code=201)
async def create_share_link(user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    link_hash = await share_service.create_link(session, user_id)
    return ShareLinkResponse(message="Shareable link generated successfully", hash=link_hash)

@app.get("/api/share/link/{link_hash}", response_model=List[ContentRead])
async def get_shared_content(link_hash: str, session: AsyncSession = Depends(get_session)):
    return [_public(c) for c in await share_service.resolve_link(session, link_hash)]

# Users
@app.get("/api/user/{user_id}", response_model=UserProfile)
async def get_user(user_id: int, current_user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    user = await session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return UserProfile.model_validate(user)

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
