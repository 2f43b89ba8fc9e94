"""Dual-mode (login / signup) authentication form.

The form is a small state machine around one of two modes. Each mode owns
its fields, its validation rules and the identity call it performs, so a
submission never mixes the rules of one mode with the call of the other.

Errors come in three kinds, all carried as ``FormError``:

* validation - per field, shown inline, blocks submission
* provider   - returned by the identity API, shown as a banner
* unexpected - anything raised during submission, shown as a banner
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Literal, NoReturn

from pydantic import AfterValidator, BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from blogauth.components.navigation import Navigator
from blogauth.schemas.auth import is_valid_email
from blogauth.templating import render_fragment

if TYPE_CHECKING:
    from blogauth.client.auth_client import AuthClient, AuthResult

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50

# At least one lowercase letter, one uppercase letter and one digit
_STRONG_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])", re.DOTALL)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


# === Validation rules ===


def _fail(kind: str, message: str) -> NoReturn:
    raise PydanticCustomError(kind, message)


def check_email(value: str) -> str:
    if not value:
        _fail("required", "Email is required")
    if not is_valid_email(value):
        _fail("invalid_email", "Please enter a valid email address")
    return value


def check_password(value: str) -> str:
    if not value:
        _fail("required", "Password is required")
    if len(value) < MIN_PASSWORD_LENGTH:
        _fail("too_short", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return value


def check_strong_password(value: str) -> str:
    check_password(value)
    if not _STRONG_PASSWORD.match(value):
        _fail(
            "weak_password",
            "Password must contain at least one uppercase letter, one lowercase letter, and one number",
        )
    return value


def check_name(value: str) -> str:
    if not value:
        _fail("required", "Name is required")
    if len(value) < MIN_NAME_LENGTH:
        _fail("too_short", f"Name must be at least {MIN_NAME_LENGTH} characters")
    if len(value) > MAX_NAME_LENGTH:
        _fail("too_long", f"Name must be at most {MAX_NAME_LENGTH} characters")
    return value


Email = Annotated[str, AfterValidator(check_email)]
Password = Annotated[str, AfterValidator(check_password)]
StrongPassword = Annotated[str, AfterValidator(check_strong_password)]
Name = Annotated[str, AfterValidator(check_name)]


class LoginCredentials(BaseModel):
    email: Email
    password: Password


class SignupCredentials(BaseModel):
    name: Name
    email: Email
    password: StrongPassword


def validate_fields(schema: type[BaseModel], values: dict[str, str]) -> dict[str, str]:
    """First failing rule per field, keyed by field name."""
    try:
        schema.model_validate(values)
    except ValidationError as exc:
        messages: dict[str, str] = {}
        for error in exc.errors():
            messages.setdefault(str(error["loc"][0]), error["msg"])
        return messages
    return {}


# === Modes ===


@dataclass(frozen=True)
class LoginMode:
    name: Literal["login"] = "login"
    fields: tuple[str, ...] = ("email", "password")
    schema: type[BaseModel] = LoginCredentials
    fallback_error: str = "Login failed"
    title: str = "Login to your account"
    description: str = "Enter your email below to login to your account"
    submit_label: str = "Login"
    loading_label: str = "Logging in..."
    switch_prompt: str = "Don't have an account?"
    switch_label: str = "Sign up"

    async def call(self, client: AuthClient, credentials: LoginCredentials, callback_url: str) -> AuthResult:
        return await client.sign_in.email(
            email=credentials.email,
            password=credentials.password,
            callback_url=callback_url,
        )


@dataclass(frozen=True)
class SignupMode:
    name: Literal["signup"] = "signup"
    fields: tuple[str, ...] = ("name", "email", "password")
    schema: type[BaseModel] = SignupCredentials
    fallback_error: str = "Signup failed"
    title: str = "Create an account"
    description: str = "Enter your details below to create your account"
    submit_label: str = "Sign up"
    loading_label: str = "Signing up..."
    switch_prompt: str = "Already have an account?"
    switch_label: str = "Login"

    async def call(self, client: AuthClient, credentials: SignupCredentials, callback_url: str) -> AuthResult:
        return await client.sign_up.email(
            email=credentials.email,
            password=credentials.password,
            name=credentials.name,
            callback_url=callback_url,
        )


FormMode = LoginMode | SignupMode

LOGIN = LoginMode()
SIGNUP = SignupMode()


def mode_from_name(name: str) -> FormMode:
    """Raises ValueError for anything but "login" or "signup"."""
    if name == LOGIN.name:
        return LOGIN
    if name == SIGNUP.name:
        return SIGNUP
    raise ValueError(f"Unknown form mode: {name!r}")


# === Errors ===


class FormErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    PROVIDER = "provider"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class FormError:
    kind: FormErrorKind
    message: str
    field: str | None = None


# === Form ===


class AuthForm:
    """Login/signup form state.

    Args:
        client: Identity client used on submit.
        navigator: Receives the full-page navigation after success.
        mode: Initial mode.
        callback_url: Where to navigate after success.
    """

    def __init__(
        self,
        client: AuthClient,
        navigator: Navigator,
        mode: FormMode = LOGIN,
        callback_url: str = "/",
    ):
        self._client = client
        self._navigator = navigator
        self.callback_url = callback_url
        self.is_loading = False
        self.banner: FormError | None = None
        self._reset(mode)

    def _reset(self, mode: FormMode) -> None:
        self.mode = mode
        self.values: dict[str, str] = {field: "" for field in mode.fields}
        self.field_errors: dict[str, FormError] = {}
        self._touched: set[str] = set()

    @property
    def auth_error(self) -> str:
        """Banner message, empty when there is none."""
        return self.banner.message if self.banner else ""

    @property
    def errors(self) -> dict[str, str]:
        return {field: error.message for field, error in self.field_errors.items()}

    def validate(self) -> dict[str, str]:
        return validate_fields(self.mode.schema, self.values)

    def _refresh_field_errors(self) -> None:
        messages = self.validate()
        self.field_errors = {
            field: FormError(FormErrorKind.VALIDATION, messages[field], field=field)
            for field in self.mode.fields
            if field in self._touched and field in messages
        }

    def set_value(self, field: str, value: str) -> None:
        """Change a field and re-validate every field touched so far.

        Raises:
            KeyError: If the current mode has no such field.
        """
        if field not in self.values:
            raise KeyError(f"{field!r} is not a field of the {self.mode.name} form")
        self.values[field] = value
        self._touched.add(field)
        self._refresh_field_errors()

    def toggle_mode(self) -> None:
        """Switch login <-> signup, clearing the banner and every field."""
        self._reset(SIGNUP if isinstance(self.mode, LoginMode) else LOGIN)
        self.banner = None

    async def submit(self) -> bool:
        """Validate, call the identity API and navigate on success.

        Returns:
            True if the identity call succeeded.
        """
        self._touched = set(self.mode.fields)
        self._refresh_field_errors()
        if self.field_errors:
            return False

        mode = self.mode
        credentials = mode.schema.model_validate(self.values)

        self.is_loading = True
        self.banner = None
        try:
            result = await mode.call(self._client, credentials, self.callback_url)
            if result.error is not None:
                self.banner = FormError(FormErrorKind.PROVIDER, result.error.message or mode.fallback_error)
                return False

            logger.info("%s successful", mode.name.capitalize())
            self._navigator.navigate(self.callback_url)
            return True
        except Exception:
            logger.exception("Unexpected error during %s", mode.name)
            self.banner = FormError(FormErrorKind.UNEXPECTED, UNEXPECTED_ERROR_MESSAGE)
            return False
        finally:
            self.is_loading = False

    def render(self) -> str:
        return render_fragment("auth_form.html", form=self)
