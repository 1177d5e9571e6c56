r"""Single transfer handle of the transfer engine.

An ``EasyHandle`` performs the transfer described by a
``TransferOptions`` either synchronously, with an ``httpx.Client`` that is
kept open between attempts, or asynchronously, with a short-lived
``httpx.AsyncClient`` when it is driven by a ``MultiHandle``. The outcome
of the last transfer (error code, error message, captured content and
statistics) is kept on the handle until the next transfer starts.
"""

from __future__ import annotations

__all__ = ["EasyHandle"]

import logging
from http.cookiejar import MozillaCookieJar
from typing import TYPE_CHECKING, Any

import httpx

from httpchannel.engine.classify import TRANSFER_EXCEPTIONS, classify_exception
from httpchannel.engine.info import TransferTracer, build_info, format_response_head
from httpchannel.engine.options import TransferOptions
from httpchannel.errors import TransferErrorKind

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

logger: logging.Logger = logging.getLogger(__name__)


class EasyHandle:
    r"""Handle that performs one configured transfer.

    Args:
        options: The transfer configuration. A default configuration is
            created if ``None``.
        transport: Optional httpx transport used instead of the network,
            for example an ``httpx.MockTransport``. It must support the
            sync and/or async interface depending on how the handle is
            driven.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel.engine import EasyHandle, TransferOptions
        >>> transport = httpx.MockTransport(lambda request: httpx.Response(200, text="hi"))
        >>> options = TransferOptions(url="https://example.com", return_transfer=True)
        >>> with EasyHandle(options, transport=transport) as handle:
        ...     handle.perform()
        ...     handle.getinfo("http_code")
        ...
        <TransferErrorKind.OK: 0>
        200

        ```
    """

    def __init__(
        self,
        options: TransferOptions | None = None,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options: TransferOptions = options or TransferOptions()
        self._transport = transport
        self._client: httpx.Client | None = None
        self._reset_outcome()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def errno(self) -> TransferErrorKind:
        """The error kind of the last transfer, ``OK`` on success."""
        return self._errno

    @property
    def errstr(self) -> str:
        """The error message of the last transfer, empty on success."""
        return self._errstr

    @property
    def exception(self) -> BaseException | None:
        """The exception that made the last transfer fail, if any."""
        return self._exception

    @property
    def content(self) -> bytes | None:
        """The captured response of the last transfer.

        ``None`` if the response is not captured in memory or if the
        transfer failed.
        """
        return self._content

    def getinfo(self, key: str | None = None) -> Any:
        """Return the statistics of the last transfer.

        Args:
            key: The statistic to return. All the statistics are returned
                as a new dictionary if ``None``.

        Returns:
            The statistic value (``None`` if unknown) or all of them.
        """
        if key is None:
            return dict(self._info)
        return self._info.get(key)

    def reset_client(self) -> None:
        """Close the sync client so the next transfer uses the current
        options."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def close(self) -> None:
        """Release the resources held by the handle."""
        self.reset_client()

    def perform(self) -> TransferErrorKind:
        """Perform the transfer synchronously.

        Returns:
            The error kind of the transfer, ``OK`` on success.
        """
        self._reset_outcome()
        if not self.options.url:
            return self._fail_without_url()

        tracer = TransferTracer()
        client = self._get_client()
        try:
            response = client.request(
                **self.options.request_kwargs(), extensions={"trace": tracer}
            )
        except TRANSFER_EXCEPTIONS as exc:
            tracer.finish()
            self._fail(exc, tracer)
        else:
            tracer.finish()
            self._complete(response, tracer)
        self._save_cookies(client.cookies)
        return self._errno

    async def aperform(self) -> TransferErrorKind:
        """Perform the transfer on the running event loop.

        Returns:
            The error kind of the transfer, ``OK`` on success.
        """
        self._reset_outcome()
        if not self.options.url:
            return self._fail_without_url()

        tracer = TransferTracer()
        try:
            async with httpx.AsyncClient(**self._client_kwargs()) as client:
                try:
                    response = await client.request(
                        **self.options.request_kwargs(), extensions={"trace": tracer.atrace}
                    )
                finally:
                    self._save_cookies(client.cookies)
        except TRANSFER_EXCEPTIONS as exc:
            tracer.finish()
            self._fail(exc, tracer)
        else:
            tracer.finish()
            self._complete(response, tracer)
        return self._errno

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs = self.options.client_kwargs()
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(**self._client_kwargs())
        return self._client

    def _save_cookies(self, cookies: httpx.Cookies) -> None:
        jar = cookies.jar
        if self.options.cookie_file is None or not isinstance(jar, MozillaCookieJar):
            return
        try:
            jar.save(str(self.options.cookie_file), ignore_discard=True, ignore_expires=True)
        except OSError as exc:
            logger.warning(f"Could not save cookies to {self.options.cookie_file}: {exc}")

    def _reset_outcome(self) -> None:
        self._errno = TransferErrorKind.OK
        self._errstr = ""
        self._exception: BaseException | None = None
        self._content: bytes | None = None
        self._info: dict[str, Any] = {}

    def _complete(self, response: httpx.Response, tracer: TransferTracer) -> None:
        head = b"".join(format_response_head(r) for r in (*response.history, response))
        self._info = build_info(
            url=str(self.options.url),
            tracer=tracer,
            response=response,
            header_size=len(head),
            upload_size=len(response.request.content),
        )
        status_code = response.status_code
        if self.options.fail_on_error and status_code >= 400:
            logger.debug(f"{self.options.method} request to {self.options.url} returned {status_code}")
            self._errno = TransferErrorKind.HTTP_RETURNED_ERROR
            self._errstr = f"The requested URL returned error: {status_code}"
            return

        if self.options.return_transfer:
            self._content = (head if self.options.return_header else b"") + response.content
        elif self.options.output is not None:
            try:
                self.options.output.write(response.content)
            except OSError as exc:
                self._errno = TransferErrorKind.WRITE_ERROR
                self._errstr = f"Failure writing output to destination: {exc}"
                self._exception = exc

    def _fail(self, exc: BaseException, tracer: TransferTracer) -> None:
        self._errno = classify_exception(exc)
        self._errstr = str(exc) or type(exc).__name__
        self._exception = exc
        self._info = build_info(url=str(self.options.url), tracer=tracer)
        logger.debug(
            f"{self.options.method} request to {self.options.url} failed with "
            f"{type(exc).__name__} ({self._errno.name}): {exc}"
        )

    def _fail_without_url(self) -> TransferErrorKind:
        self._errno = TransferErrorKind.URL_MALFORMAT
        self._errstr = "No URL set"
        self._info = build_info(url="", tracer=TransferTracer())
        return self._errno
