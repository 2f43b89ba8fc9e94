"""Server-rendered pages: home (with navbar), login/signup form, logout.

Pages talk to the identity API through an AuthClient whose transport is
this application, so a browser form post goes through the same form state
machine and client binding as any other client.
"""

from typing import Literal

import httpx
from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from blogauth.client.auth_client import AuthClient
from blogauth.components.auth_form import AuthForm, mode_from_name
from blogauth.components.navbar import Navbar
from blogauth.components.navigation import RedirectNavigator
from blogauth.config import settings
from blogauth.identity.cookies import unsign_token
from blogauth.routes.auth import clear_session_cookie, client_info, set_session_cookie
from blogauth.templating import templates

router = APIRouter(tags=["pages"])


def page_client(request: Request, token: str | None = None) -> AuthClient:
    """AuthClient bound in-process to this app, forwarding the caller's identity."""
    info = client_info(request)
    headers = {"user-agent": info.user_agent or "blogauth"}
    if info.ip_address:
        headers["x-forwarded-for"] = info.ip_address
    return AuthClient(
        str(request.base_url).rstrip("/"),
        transport=httpx.ASGITransport(app=request.app),
        token=token,
        headers=headers,
    )


def cookie_token(request: Request) -> str | None:
    cookie = request.cookies.get(settings.session_cookie_name)
    return unsign_token(cookie, settings.auth_secret) if cookie else None


async def _render_navbar(client: AuthClient) -> str:
    navbar = Navbar(client)
    try:
        if client.session_token:
            await client.get_session()
        else:
            client.use_session().clear()
        return navbar.render()
    finally:
        navbar.close()


@router.get("/", response_class=HTMLResponse)
async def home(request: Request) -> Response:
    """Home page with the session-aware navbar."""
    async with page_client(request, token=cookie_token(request)) as client:
        navbar_html = await _render_navbar(client)
    return templates.TemplateResponse(request, "home.html", {"navbar": navbar_html})


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, mode: Literal["login", "signup"] = "login") -> Response:
    """Login form, or the signup form with ?mode=signup."""
    async with page_client(request) as client:
        form = AuthForm(client, RedirectNavigator(), mode=mode_from_name(mode))
        form_html = form.render()
    return templates.TemplateResponse(request, "login.html", {"form": form_html})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    mode: Literal["login", "signup"] = Form("login"),
    email: str = Form(""),
    password: str = Form(""),
    name: str = Form(""),
) -> Response:
    """Submit the form. Success redirects to the home page with the session cookie."""
    submitted = {"name": name, "email": email, "password": password}
    navigator = RedirectNavigator()

    async with page_client(request) as client:
        form = AuthForm(client, navigator, mode=mode_from_name(mode))
        for field in form.mode.fields:
            form.set_value(field, submitted[field])

        await form.submit()

        if navigator.target is not None and client.session_token:
            response = RedirectResponse(navigator.target, status_code=303)
            set_session_cookie(response, client.session_token)
            return response
        form_html = form.render()

    return templates.TemplateResponse(request, "login.html", {"form": form_html})


@router.post("/logout", response_class=HTMLResponse)
async def logout(request: Request) -> Response:
    """Sign out and re-render the home page from the updated session state."""
    async with page_client(request, token=cookie_token(request)) as client:
        navbar = Navbar(client)
        try:
            await navbar.sign_out()
            navbar_html = navbar.render()
        finally:
            navbar.close()

    response = templates.TemplateResponse(request, "home.html", {"navbar": navbar_html})
    clear_session_cookie(response)
    return response
