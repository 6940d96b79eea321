"""Public short URL construction behind reverse proxies."""

from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlsplit


def _normalize_prefix(prefix: Optional[str]) -> str:
    prefix = (prefix or "").strip().strip("/")
    return "/" + prefix if prefix else ""


@dataclass(frozen=True)
class PublicOrigin:
    """Scheme, host and path prefix under which short codes are served.

    ``short_url`` appends a code to this origin, e.g. ``https://sho.rt/s`` +
    ``abc1234``.
    """

    scheme: str
    host: str
    prefix: str = ""

    @classmethod
    def from_base_url(cls, base_url: str, prefix: Optional[str] = None) -> "PublicOrigin":
        """Build from a configured base URL such as ``https://sho.rt/s``.

        A path on the base URL is used as prefix unless ``prefix`` is given.
        """
        parts = urlsplit(base_url.strip())
        return cls(
            scheme=parts.scheme or "http",
            host=parts.netloc,
            prefix=_normalize_prefix(parts.path if prefix is None else prefix),
        )

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        fallback_base_url: str,
        request_scheme: Optional[str] = None,
        request_host: Optional[str] = None,
        default_prefix: str = "",
    ) -> "PublicOrigin":
        """Work out the origin a client used to reach us.

        Priority:
        1. X-Forwarded-Proto + X-Forwarded-Host
        2. Request scheme + Host header
        3. Configured base URL

        X-Forwarded-Prefix overrides ``default_prefix`` in every case.

        Args:
            headers: Request headers (any key case)
            fallback_base_url: Base URL from configuration
            request_scheme: Scheme the request arrived with
            request_host: Host header of the request
            default_prefix: Prefix from configuration

        Returns:
            The public origin
        """
        lowered = {key.lower(): value for key, value in headers.items()}
        prefix = lowered.get("x-forwarded-prefix") or default_prefix

        proto = lowered.get("x-forwarded-proto")
        host = lowered.get("x-forwarded-host")
        if proto and host:
            # Proxies may send a comma-separated chain; the first hop is the client's
            return cls(proto.split(",")[0].strip(), host.split(",")[0].strip(), _normalize_prefix(prefix))

        if request_scheme and request_host:
            return cls(request_scheme, request_host, _normalize_prefix(prefix))

        return cls.from_base_url(fallback_base_url, prefix or None)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}{self.prefix}"

    def short_url(self, short_code: str) -> str:
        return f"{self.base_url}/{short_code}"
