"""Interface for delivery transports.

Defines the contract for sending a batch payload to the remote endpoint.
Timeouts, connection errors and HTTP status handling are the transport's
responsibility and surface only as the free-text ``error`` of the response.
"""

import abc

from issuerelay.domain.models.submission import BatchPayload, TransportResponse


class TransportClient(abc.ABC):
    """Abstract Base Class for a single best-effort delivery attempt."""

    @abc.abstractmethod
    async def send(self, payload: BatchPayload) -> TransportResponse:
        """Attempts delivery of the payload exactly once.

        Args:
            payload: The batch to deliver. Must not be mutated.

        Returns:
            A TransportResponse. On failure ``error`` carries a diagnostic
            string used for retry classification.
        """
        pass

    @abc.abstractmethod
    async def test_connection(self) -> bool:
        """Checks whether the remote endpoint is reachable.

        Returns:
            True if the endpoint answered with a 2xx status.
        """
        pass
