"""
The value returned by executing an endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import DecodeError

if TYPE_CHECKING:
    from .clients.pipeline import Header, Response
    from .codecs import Codec
    from .endpoint import Endpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class EndpointResult(Generic[T]):
    """
    Raw response plus on-demand decoding.

    Holding an `EndpointResult` means the transport call and every middleware
    succeeded; it says nothing about the status code or the payload. Decoding is
    deferred to `parse`/`decode`, which may be called any number of times and
    never modify the stored bytes.

    A non-2xx status is not an error here. Check `is_success`, or register
    `RaiseForStatus` on the client to reject such responses during execution.
    """

    response: Response
    endpoint: Endpoint

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> tuple[Header, ...]:
        return self.response.headers

    @property
    def content(self) -> bytes:
        return self.response.content

    @property
    def is_success(self) -> bool:
        return self.response.is_success

    def raw(self) -> bytes:
        """The response body exactly as received."""
        return self.response.content

    def parse(self) -> T | None:
        """Decode into the endpoint's declared `result` type."""
        descriptor = self.endpoint.descriptor()
        return self._decode(descriptor.result, descriptor.response_codec)

    def decode(self, target: type[U] | Any) -> U | None:
        """
        Decode the payload into `target`.

        Returns `None` for an empty payload (except for raw responses, which
        always hand back bytes).

        Raises:
            DecodeError: If the payload cannot be decoded into `target`.
        """
        return self._decode(target, self.endpoint.descriptor().response_codec)

    def _decode(self, target: Any, codec: Codec) -> Any:
        original = self.response.content
        try:
            content = self.endpoint.transform(original)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Response transform failed: {e}", content=original, target=target) from e
        if not content and codec.name != "raw":
            return None
        logger.debug(f"Decoding {len(content)} bytes as {codec.name}")
        return codec.decode(content, target)
