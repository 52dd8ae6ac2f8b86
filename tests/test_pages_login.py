"""Tests for the login page abstraction."""

from unittest.mock import AsyncMock, call

import pytest

from shopqa.pages.base import PageUnderTest
from shopqa.pages.login import LoginPage


@pytest.fixture
def login(mock_surface) -> LoginPage:
    return LoginPage(mock_surface)


class TestLoginInterface:
    """The shared capability interface."""

    def test_implements_protocol(self, login):
        assert isinstance(login, PageUnderTest)

    def test_path_from_config(self, login):
        assert login.path == "/v1/index.html"

    @pytest.mark.asyncio
    async def test_navigate(self, login, mock_surface):
        await login.navigate()
        mock_surface.goto.assert_awaited_once_with("/v1/index.html")

    @pytest.mark.asyncio
    async def test_act_dispatches(self, login, mock_surface):
        await login.act("login", "standard_user", "secret_sauce")
        mock_surface.click.assert_awaited_once_with(LoginPage.login_button)

    @pytest.mark.asyncio
    async def test_act_unknown_verb(self, login):
        with pytest.raises(ValueError, match="does not support"):
            await login.act("dance")


@pytest.mark.asyncio
class TestAttempt:
    """Tests for LoginPage.attempt()."""

    async def test_fills_and_submits(self, login, mock_surface):
        await login.attempt("standard_user", "secret_sauce")
        assert mock_surface.fill.await_args_list == [
            call(LoginPage.username_input, "standard_user"),
            call(LoginPage.password_input, "secret_sauce"),
        ]
        mock_surface.click.assert_awaited_once_with(LoginPage.login_button)
        mock_surface.wait_until.assert_awaited_once()

    async def test_settled_when_url_leaves_login(self, login, mock_surface):
        mock_surface.on_path.return_value = False
        assert await login._attempt_settled() is True
        mock_surface.is_present_now.assert_not_awaited()

    async def test_settled_when_error_shown(self, login, mock_surface):
        mock_surface.on_path.return_value = True
        mock_surface.is_present_now.return_value = True
        assert await login._attempt_settled() is True

    async def test_not_settled_yet(self, login, mock_surface):
        mock_surface.on_path.return_value = True
        mock_surface.is_present_now.return_value = False
        assert await login._attempt_settled() is False

    async def test_does_not_raise_when_nothing_happens(self, login, mock_surface):
        mock_surface.wait_until = AsyncMock(return_value=False)
        await login.attempt("nobody", "nothing")


@pytest.mark.asyncio
class TestErrorMessage:
    """Reading and dismissing the error banner."""

    async def test_error_text(self, login, mock_surface):
        mock_surface.read_text.return_value = "Epic sadface: Username is required"
        assert await login.error_text() == "Epic sadface: Username is required"

    async def test_error_text_empty_when_hidden(self, login, mock_surface):
        mock_surface.is_visible.return_value = False
        assert await login.error_text() == ""
        mock_surface.read_text.assert_not_awaited()

    async def test_error_text_now_does_not_wait(self, login, mock_surface):
        mock_surface.is_present_now.return_value = False
        assert await login.error_text_now() == ""
        mock_surface.is_visible.assert_not_awaited()

    async def test_close_error(self, login, mock_surface):
        await login.close_error()
        mock_surface.click.assert_awaited_once_with(LoginPage.error_close_button)

    async def test_close_error_without_banner(self, login, mock_surface):
        mock_surface.is_visible.return_value = False
        await login.close_error()
        mock_surface.click.assert_not_awaited()


@pytest.mark.asyncio
class TestFormHelpers:
    """Form clearing and field focus."""

    async def test_clear_form(self, login, mock_surface):
        await login.clear_form()
        assert mock_surface.fill.await_args_list == [
            call(LoginPage.username_input, ""),
            call(LoginPage.password_input, ""),
        ]

    async def test_click_password_field(self, login, mock_surface):
        await login.click_field("password")
        mock_surface.click.assert_awaited_once_with(LoginPage.password_input)

    async def test_click_defaults_to_username(self, login, mock_surface):
        await login.click_field("anything")
        mock_surface.click.assert_awaited_once_with(LoginPage.username_input)

    async def test_accepted_usernames(self, login, mock_surface):
        mock_surface.read_text.return_value = "standard_user\nlocked_out_user"
        assert "locked_out_user" in await login.accepted_usernames()

    async def test_redirected_after_login(self, login, mock_surface):
        mock_surface.on_path.side_effect = lambda suffix: suffix == "/v1/inventory.html"
        assert await login.is_redirected_after_login() is True
