"""Per-session browsing identities: user agent, locale and sticky proxy."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from trisearch import config
from trisearch.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyConfig:
    server: str
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Identity:
    session_index: int
    user_agent: str
    locale: str
    extra_headers: dict[str, str]
    viewport: dict[str, int]
    proxy: dict[str, str] | None = field(default=None, repr=False)
    proxy_session: str | None = None

    def context_options(self) -> dict:
        """Keyword arguments for ``Browser.new_context``."""
        options: dict = {
            "user_agent": self.user_agent,
            "locale": self.locale,
            "extra_http_headers": dict(self.extra_headers),
            "viewport": dict(self.viewport),
        }
        if self.proxy is not None:
            options["proxy"] = dict(self.proxy)
        return options


def resolve_proxy(
    server: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> ProxyConfig | None:
    """Validate proxy settings; all three must be set, or none.

    Arguments left as ``None`` fall back to the values in :mod:`trisearch.config`.
    """
    values = {
        "PROXY_SERVER": config.PROXY_SERVER if server is None else server,
        "PROXY_USERNAME": config.PROXY_USERNAME if username is None else username,
        "PROXY_PASSWORD": config.PROXY_PASSWORD if password is None else password,
    }
    present = {k for k, v in values.items() if v and v.strip()}
    if not present:
        logger.warning("Proxy environment variables not set; running without proxy.")
        return None
    if len(present) != len(values):
        missing = sorted(set(values) - present)
        raise ConfigurationError(
            f"Proxy is partially configured; missing {', '.join(missing)}"
        )
    return ProxyConfig(
        server=values["PROXY_SERVER"].strip(),
        username=values["PROXY_USERNAME"].strip(),
        password=values["PROXY_PASSWORD"],
    )


def provision_identity(
    session_index: int,
    proxy: ProxyConfig | None = None,
    clock: Callable[[], float] = time.time,
) -> Identity:
    """Build the identity for *session_index*.

    The user agent rotates by ``session_index % len(USER_AGENTS)``. With a
    proxy, the username gets a ``-session-<epoch_ms>-<index>`` suffix so the
    upstream provider pins each session to its own exit.
    """
    if session_index < 0:
        raise ValueError(f"session_index must be >= 0, got {session_index}")

    proxy_options: dict[str, str] | None = None
    proxy_session: str | None = None
    if proxy is not None:
        proxy_session = f"session-{int(clock() * 1000)}-{session_index}"
        proxy_options = {
            "server": proxy.server,
            "username": f"{proxy.username}-{proxy_session}",
            "password": proxy.password,
        }

    return Identity(
        session_index=session_index,
        user_agent=config.USER_AGENTS[session_index % len(config.USER_AGENTS)],
        locale=config.LOCALE,
        extra_headers={"Accept-Language": config.ACCEPT_LANGUAGE},
        viewport=dict(config.VIEWPORT),
        proxy=proxy_options,
        proxy_session=proxy_session,
    )
