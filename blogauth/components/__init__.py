"""UI components: the login/signup form and the session-aware navbar."""

from blogauth.components.auth_form import LOGIN, SIGNUP, AuthForm, FormError, FormErrorKind, FormMode
from blogauth.components.navbar import Navbar, NavbarStatus, NavbarView
from blogauth.components.navigation import Navigator, RedirectNavigator

__all__ = [
    "LOGIN",
    "SIGNUP",
    "AuthForm",
    "FormError",
    "FormErrorKind",
    "FormMode",
    "Navbar",
    "NavbarStatus",
    "NavbarView",
    "Navigator",
    "RedirectNavigator",
]
