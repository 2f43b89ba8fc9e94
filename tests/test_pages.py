"""Tests for the server-rendered pages (home, login form, logout)."""

import pytest
from sqlalchemy import select

from blogauth.config import settings
from blogauth.models import Session, User


# =============================================================================
# Home
# =============================================================================


@pytest.mark.asyncio
async def test_home_anonymous(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert 'data-status="anonymous"' in response.text
    assert 'href="/login"' in response.text


@pytest.mark.asyncio
async def test_home_signed_in(client, active_session, cookie_header):
    response = await client.get("/", headers=cookie_header("valid-test-token"))

    assert 'data-status="authenticated"' in response.text
    assert "Sign Out" in response.text
    assert ">TU<" in response.text


@pytest.mark.asyncio
async def test_home_with_expired_session(client, expired_session, cookie_header):
    response = await client.get("/", headers=cookie_header("expired-test-token"))

    assert 'data-status="anonymous"' in response.text


# =============================================================================
# Login form
# =============================================================================


@pytest.mark.asyncio
async def test_login_page(client):
    response = await client.get("/login")

    assert response.status_code == 200
    assert 'data-mode="login"' in response.text
    assert "Login to your account" in response.text


@pytest.mark.asyncio
async def test_signup_page(client):
    response = await client.get("/login", params={"mode": "signup"})

    assert 'data-mode="signup"' in response.text
    assert 'name="name"' in response.text


@pytest.mark.asyncio
async def test_unknown_mode_rejected(client):
    response = await client.get("/login", params={"mode": "register"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_validation_errors_rerender_form(client):
    response = await client.post("/login", data={"mode": "login", "email": "bad", "password": "abc"})

    assert response.status_code == 200
    assert "Please enter a valid email address" in response.text
    assert "Password must be at least 6 characters" in response.text
    assert 'value="bad"' in response.text
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_login_success_redirects_with_cookie(client, registered_user):
    response = await client.post(
        "/login",
        data={"mode": "login", "email": "test-user@example.com", "password": "Password123"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert response.headers["set-cookie"].startswith(f"{settings.session_cookie_name}=")


@pytest.mark.asyncio
async def test_login_wrong_password_shows_banner(client, registered_user):
    response = await client.post(
        "/login",
        data={"mode": "login", "email": "test-user@example.com", "password": "WrongPass1"},
    )

    assert response.status_code == 200
    assert 'data-kind="provider"' in response.text
    assert "Invalid email or password" in response.text
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_signup_creates_user_and_redirects(client, session_maker):
    response = await client.post(
        "/login",
        data={"mode": "signup", "name": "Page User", "email": "test-page@example.com", "password": "Passw0rd1"},
    )

    assert response.status_code == 303
    async with session_maker() as session:
        user = (await session.execute(select(User).where(User.email == "test-page@example.com"))).scalar_one()
    assert user.name == "Page User"


@pytest.mark.asyncio
async def test_signup_weak_password_rejected_by_form(client, session_maker):
    response = await client.post(
        "/login",
        data={"mode": "signup", "name": "Page User", "email": "test-page@example.com", "password": "password1"},
    )

    assert response.status_code == 200
    assert "one uppercase letter" in response.text
    async with session_maker() as session:
        assert (await session.execute(select(User))).scalars().all() == []


@pytest.mark.asyncio
async def test_signup_server_rejection_shows_banner(client, registered_user):
    response = await client.post(
        "/login",
        data={"mode": "signup", "name": "Again", "email": "test-user@example.com", "password": "Passw0rd1"},
    )

    assert response.status_code == 200
    assert "User already exists. Use another email." in response.text


# =============================================================================
# Logout
# =============================================================================


@pytest.mark.asyncio
async def test_logout(client, active_session, cookie_header, session_maker):
    response = await client.post("/logout", headers=cookie_header("valid-test-token"))

    assert response.status_code == 200
    assert 'data-status="anonymous"' in response.text
    assert f'{settings.session_cookie_name}=""' in response.headers["set-cookie"]
    async with session_maker() as session:
        assert (await session.execute(select(Session))).scalars().all() == []


@pytest.mark.asyncio
async def test_full_browser_flow(client):
    """Sign up through the form, land on home signed in, then log out."""
    signup = await client.post(
        "/login",
        data={"mode": "signup", "name": "Flow User", "email": "test-flow@example.com", "password": "Passw0rd1"},
    )
    cookie = signup.headers["set-cookie"].split(";")[0]
    client.cookies.clear()

    home = await client.get("/", headers={"cookie": cookie})
    assert 'data-status="authenticated"' in home.text
    assert "seed=Flow" in home.text

    await client.post("/logout", headers={"cookie": cookie})
    client.cookies.clear()

    home = await client.get("/", headers={"cookie": cookie})
    assert 'data-status="anonymous"' in home.text
