"""
FastAPI backend: auth and contact REST API.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from neo4j import GraphDatabase
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from contactbook.application import (
    AuthService,
    ContactData,
    ContactService,
    ContactView,
    UserView,
)
from contactbook.config import Settings
from contactbook.domain import ContactBookError, ContactEmail, ContactPhone, ErrorKind
from contactbook.infrastructure import (
    BcryptPasswordHasher,
    Neo4jContactRepository,
    Neo4jUserRepository,
    TokenIssuer,
    ensure_constraints,
)
from contactbook.infrastructure.passwords import MAX_PASSWORD_BYTES, password_too_long

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_IDENTIFIER_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CONTACT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_IDENTIFIER: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.USER_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_INVALID_SIGNATURE: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_MALFORMED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UNAUTHORIZED_ACCESS: status.HTTP_403_FORBIDDEN,
    ErrorKind.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DUPLICATE_IDENTIFIER: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_CONTACT: status.HTTP_409_CONFLICT,
    ErrorKind.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Services:
    auth: AuthService
    contacts: ContactService


def _get_driver(settings: Settings):
    return GraphDatabase.driver(
        settings.neo4j_uri, auth=(settings.neo4j_user, settings.neo4j_password)
    )


def _build_services(app: FastAPI) -> Services:
    settings = Settings.from_env()
    if getattr(app.state, "driver", None) is None:
        app.state.driver = _get_driver(settings)
        ensure_constraints(app.state.driver)
    driver = app.state.driver
    auth = AuthService(
        Neo4jUserRepository(driver),
        BcryptPasswordHasher(settings.bcrypt_rounds),
        TokenIssuer(settings.jwt_secret, settings.jwt_expiration),
    )
    contacts = ContactService(
        Neo4jContactRepository(driver),
        auth.resolver,
        conceal_foreign_contacts=settings.conceal_foreign_contacts,
    )
    return Services(auth=auth, contacts=contacts)


_services_lock = threading.Lock()


def get_services(request: Request) -> Services:
    """Build services (and the one Neo4j driver) on first use; sync routes may race here."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        with _services_lock:
            services = getattr(request.app.state, "services", None)
            if services is None:
                services = _build_services(request.app)
                request.app.state.services = services
    return services


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    app.state.services = None
    try:
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()
            app.state.driver = None
        app.state.services = None


app = FastAPI(title="Contactbook API", lifespan=lifespan)


@app.exception_handler(ContactBookError)
async def contact_book_error_handler(request: Request, exc: ContactBookError):
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("Unexpected failure on %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status_code,
            content={"error": "An unexpected server error occurred."},
        )
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "A general server error occurred"},
    )


_bearer = HTTPBearer(auto_error=False)


def current_identifier(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    services: Services = Depends(get_services),
) -> str:
    """Canonical identifier of the caller behind the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No valid token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return services.auth.authenticate(credentials.credentials).identifier


# --- Request / response bodies (camelCase on the wire) ---


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CredentialsBody(CamelModel):
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


def _check_password_length(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return value


NewPassword = Annotated[str, Field(min_length=1), AfterValidator(_check_password_length)]


class RegisterBody(CamelModel):
    identifier: str = Field(min_length=1)
    password: NewPassword


class ChangePasswordBody(CamelModel):
    old_password: str = Field(min_length=1)
    new_password: NewPassword


class UserOut(CamelModel):
    email: str | None = None
    phone: str | None = None

    @classmethod
    def from_view(cls, view: UserView) -> "UserOut":
        return cls(email=view.email, phone=view.phone)


class ProfileOut(UserOut):
    username: str | None = None

    @classmethod
    def from_view(cls, view: UserView) -> "ProfileOut":
        return cls(email=view.email, phone=view.phone, username=view.username)


class AuthOut(CamelModel):
    token: str
    username: str


class MessageOut(CamelModel):
    message: str


class EmailItem(CamelModel):
    label: str | None = None
    email: str = Field(min_length=1)


class PhoneItem(CamelModel):
    label: str | None = None
    phone_number: str = Field(min_length=1)


class ContactBody(CamelModel):
    first_name: str = Field(min_length=1)
    last_name: str | None = None
    title: str | None = None
    emails: list[EmailItem] = Field(default_factory=list)
    phones: list[PhoneItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def _has_email_or_phone(self):
        if not self.emails and not self.phones:
            raise ValueError("A contact must have at least one email or one phone number.")
        return self

    def to_data(self) -> ContactData:
        return ContactData(
            first_name=self.first_name,
            last_name=self.last_name,
            title=self.title,
            emails=tuple(ContactEmail(label=e.label, email=e.email) for e in self.emails),
            phones=tuple(
                ContactPhone(label=p.label, phone_number=p.phone_number) for p in self.phones
            ),
        )


class ContactOut(CamelModel):
    id: str
    first_name: str
    last_name: str | None = None
    title: str | None = None
    emails: list[EmailItem]
    phones: list[PhoneItem]

    @classmethod
    def from_view(cls, view: ContactView) -> "ContactOut":
        return cls(
            id=view.id,
            first_name=view.first_name,
            last_name=view.last_name,
            title=view.title,
            emails=[EmailItem(label=e.label, email=e.email) for e in view.emails],
            phones=[
                PhoneItem(label=p.label, phone_number=p.phone_number) for p in view.phones
            ],
        )


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: auth ---


@app.post("/api/auth/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, services: Services = Depends(get_services)) -> UserOut:
    view = services.auth.register(body.identifier, body.password)
    return UserOut.from_view(view)


@app.post("/api/auth/login")
def login(body: CredentialsBody, services: Services = Depends(get_services)) -> AuthOut:
    result = services.auth.login(body.identifier, body.password)
    return AuthOut(token=result.token, username=result.username)


@app.put("/api/auth/change-password")
def change_password(
    body: ChangePasswordBody,
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> MessageOut:
    services.auth.change_password(identifier, body.old_password, body.new_password)
    return MessageOut(message="Password changed successfully!")


@app.get("/api/auth/me")
def me(
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> ProfileOut:
    return ProfileOut.from_view(services.auth.profile(identifier))


# --- REST: contacts ---


@app.get("/api/contacts")
def list_contacts(
    search: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> list[ContactOut]:
    views = services.contacts.list_contacts(identifier, search, page, size)
    return [ContactOut.from_view(v) for v in views]


@app.post("/api/contacts", status_code=status.HTTP_201_CREATED)
def create_contact(
    body: ContactBody,
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> ContactOut:
    view = services.contacts.create_contact(identifier, body.to_data())
    return ContactOut.from_view(view)


@app.get("/api/contacts/{contact_id}")
def get_contact(
    contact_id: str,
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> ContactOut:
    return ContactOut.from_view(services.contacts.get_contact(identifier, contact_id))


@app.put("/api/contacts/{contact_id}")
def update_contact(
    contact_id: str,
    body: ContactBody,
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> ContactOut:
    view = services.contacts.update_contact(identifier, contact_id, body.to_data())
    return ContactOut.from_view(view)


@app.delete("/api/contacts/{contact_id}")
def delete_contact(
    contact_id: str,
    identifier: str = Depends(current_identifier),
    services: Services = Depends(get_services),
) -> MessageOut:
    if services.contacts.delete_contact(identifier, contact_id):
        return MessageOut(message="Contact deleted successfully")
    logger.warning("User '%s' failed to delete contact %s", identifier, contact_id)
    return MessageOut(message="Unable to delete contact")
