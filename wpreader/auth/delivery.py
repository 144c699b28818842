"""Delivery of the internal authorization code back to the caller.

The caller picks the transport at authorize time through ``response_mode``:

- ``redirect``: 302 to the private-scheme URI understood by the MCP client
- ``page``: an HTML page showing the code, for manual and test flows
"""

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.responses import HTMLResponse, RedirectResponse, Response

from wpreader.auth.oauth2_server import CallbackResult
from wpreader.core.constants import RESPONSE_MODE_PAGE, RESPONSE_MODE_REDIRECT
from wpreader.core.logging import mask_secret

template_dir = Path(__file__).parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(str(template_dir)),
    autoescape=select_autoescape(["html"]),
)


def render_template(template_name: str, context: dict, status_code: int = 200) -> HTMLResponse:
    """Render Jinja2 template."""
    template = jinja_env.get_template(template_name)
    html_content = template.render(**context)
    return HTMLResponse(content=html_content, status_code=status_code)


class CodeDelivery(ABC):
    """Hands a freshly minted authorization code to the original caller."""

    @abstractmethod
    def deliver(self, result: CallbackResult) -> Response:
        """Build the response that carries the code back."""


class RedirectDelivery(CodeDelivery):
    def __init__(self, callback_uri: str) -> None:
        self.callback_uri = callback_uri

    def deliver(self, result: CallbackResult) -> Response:
        separator = "&" if "?" in self.callback_uri else "?"
        query = urlencode({"code": result.code, "state": result.state})
        return RedirectResponse(f"{self.callback_uri}{separator}{query}", status_code=302)


class PageDelivery(CodeDelivery):
    def deliver(self, result: CallbackResult) -> Response:
        session = result.session
        return render_template(
            "success.html",
            {
                "code": result.code,
                "state": result.state,
                "masked_token": mask_secret(session.wordpress_token),
                "blog_id": session.user_info.blog_id,
                "blog_url": session.user_info.blog_url,
                "expires_at": session.expires_at,
            },
        )


def get_delivery(response_mode: str, callback_uri: str) -> CodeDelivery:
    if response_mode == RESPONSE_MODE_PAGE:
        return PageDelivery()
    if response_mode == RESPONSE_MODE_REDIRECT:
        return RedirectDelivery(callback_uri)
    msg = f"Unknown response mode: {response_mode}"
    raise ValueError(msg)
