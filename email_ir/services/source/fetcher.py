"""
Email IR Email Fetcher

Retrieves a notified email from the source-data provider. Transient
failures are retried; once retries are exhausted the fetcher returns a
placeholder record marked as degraded instead of raising, so the rest of
the pipeline can still reach a verdict.
"""

import asyncio
import logging
import aiohttp
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urlparse, urlunparse

from email_ir.models.email import EmailRecord, HeaderEntry
from email_ir.models.requests import StepStatus
from email_ir.utils.constants import (
    DEGRADED_RESULT,
    DEGRADED_SENDER,
    FETCH_STATUS_FAILED,
    FETCH_STATUS_HEADER,
)
from email_ir.utils.exceptions import EmailFetchError, RetryExhaustedError, SchemaValidationError
from email_ir.utils.retry import RetryPolicy, with_retry
from email_ir.utils.security import redact_token, sanitize_error_message
from email_ir.utils.validation import validate_payload

logger = logging.getLogger(__name__)


def normalize_base_url(base_url: str, aliases: Optional[Dict[str, str]] = None) -> str:
    """
    Rewrite known dashboard hosts to their API host and drop trailing '/'.

    Args:
        base_url: Base URL supplied by the caller
        aliases: Mapping of host -> canonical API host

    Returns:
        Canonical base URL
    """
    parsed = urlparse(base_url.strip())
    host = (parsed.hostname or "").lower()

    if aliases and host in aliases:
        netloc = aliases[host]
        if parsed.port:
            netloc = f"{netloc}:{parsed.port}"
        parsed = parsed._replace(netloc=netloc)

    return urlunparse(parsed).rstrip("/")


def unwrap_payload(payload: Any) -> Any:
    """The provider answers either {data: record} or the record itself."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


def build_degraded_record(email_id: str, error: BaseException) -> EmailRecord:
    """Placeholder record used when the source email cannot be fetched."""
    reason = sanitize_error_message(error)
    return EmailRecord(
        from_address=DEGRADED_SENDER,
        subject=f"Email unavailable ({email_id})",
        html_body=(
            f"<p>The source email {email_id} could not be retrieved from the provider "
            f"after retries ({reason}). No body content is available for analysis.</p>"
        ),
        headers=[
            HeaderEntry(key=FETCH_STATUS_HEADER, value=FETCH_STATUS_FAILED),
            HeaderEntry(key="X-Email-IR-Fetch-Error", value=reason),
        ],
        result=DEGRADED_RESULT,
    )


class EmailFetcher:
    """Client for GET {base}/notified-emails/{id}."""

    def __init__(
        self,
        default_base_url: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
        host_aliases: Optional[Dict[str, str]] = None,
    ):
        self.default_base_url = default_base_url
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.host_aliases = host_aliases or {}

    @classmethod
    def from_settings(cls, settings) -> "EmailFetcher":
        return cls(
            default_base_url=settings.default_api_base_url,
            retry_policy=RetryPolicy.from_settings(settings, attempt_timeout=settings.fetch_timeout_seconds),
            timeout=settings.fetch_timeout_seconds,
            host_aliases=settings.api_host_aliases,
        )

    def endpoint(self, email_id: str, base_url: Optional[str] = None) -> str:
        base = normalize_base_url(base_url or self.default_base_url, self.host_aliases)
        return f"{base}/notified-emails/{quote(email_id, safe='')}"

    async def _request(self, url: str, access_token: str) -> Tuple[int, Any, str]:
        """
        Perform one GET.

        Returns:
            (status, parsed JSON or None, raw body text)
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(url, headers=headers) as response:
                text = await response.text()
                payload = None
                if 200 <= response.status < 300:
                    payload = await response.json(content_type=None)
                return response.status, payload, text

    async def _fetch_once(self, url: str, access_token: str) -> EmailRecord:
        try:
            status, payload, text = await self._request(url, access_token)
        except aiohttp.ClientError as e:
            raise EmailFetchError(f"Connection to source-data provider failed: {e}")
        except ValueError as e:
            raise EmailFetchError(f"Source-data provider returned invalid JSON: {e}", status=200)

        if not 200 <= status < 300:
            raise EmailFetchError(
                f"Source-data provider returned HTTP {status}",
                status=status,
                body=text,
            )

        try:
            return validate_payload(EmailRecord, unwrap_payload(payload))
        except SchemaValidationError as e:
            raise EmailFetchError(f"Unexpected email record shape: {e}", status=status, body=text)

    async def fetch(
        self,
        email_id: str,
        access_token: str,
        base_url: Optional[str] = None,
        ctx=None,
    ) -> EmailRecord:
        """
        Fetch one notified email.

        Args:
            email_id: Notified email id
            access_token: Bearer credential
            base_url: Provider base URL; the configured default when omitted
            ctx: Optional StageContext

        Returns:
            The email record, or a degraded placeholder when every attempt failed
        """
        url = self.endpoint(email_id, base_url)
        if ctx is not None:
            ctx.step_started(url=url, token=redact_token(access_token))

        try:
            email = await with_retry(
                lambda: self._fetch_once(url, access_token),
                self.retry_policy,
                name=f"fetch email {email_id}",
                retry_on=(EmailFetchError, asyncio.TimeoutError),
                should_retry=lambda e: getattr(e, "retryable", True),
            )
        except (RetryExhaustedError, EmailFetchError) as e:
            reason = sanitize_error_message(e)
            logger.warning(f"Fetching email {email_id} failed, continuing with placeholder record: {reason}")
            if ctx is not None:
                ctx.step_completed(status=StepStatus.DEGRADED, error=reason)
            return build_degraded_record(email_id, e)

        if ctx is not None:
            ctx.step_completed(sender=email.from_address, headers=len(email.headers))
        return email
