"""In-process messaging: message contracts and the asyncio message bus.

Consumers live in ``matchlens.messaging.consumers``; import it explicitly
(it depends on the service layer) and call ``wire_message_bus()`` at startup.
"""

from matchlens.messaging.bus import MessageBus, get_message_bus, reset_message_bus
from matchlens.messaging.contracts import (
    EMPTY_UUID,
    CompetitionSyncCompleted,
    CompetitionSyncRequested,
    EmbeddingGenerationCompleted,
    EmbeddingGenerationRequested,
    MatchPredictionCompleted,
    MatchPredictionRequested,
    Message,
    TeamDataIngested,
)

__all__ = [
    # Bus
    "MessageBus",
    "get_message_bus",
    "reset_message_bus",
    # Contracts
    "EMPTY_UUID",
    "CompetitionSyncCompleted",
    "CompetitionSyncRequested",
    "EmbeddingGenerationCompleted",
    "EmbeddingGenerationRequested",
    "MatchPredictionCompleted",
    "MatchPredictionRequested",
    "Message",
    "TeamDataIngested",
]
