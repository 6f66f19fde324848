"""In-memory editing sessions keyed by chat id.

A session folds each successful `ResolverResult` into its parameter snapshot; failed resolutions
leave it untouched. Nothing is persisted across process restarts.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.intent.schema import ResolveRequest, ResolverResult, StructuredParams


@dataclass
class EditSession:
    """Editing state of one chat."""

    params: StructuredParams = field(default_factory=StructuredParams)
    image: str | None = None
    mask: str | None = None
    last_result: ResolverResult | None = None

    @property
    def has_mask(self) -> bool:
        return self.mask is not None

    def request_for(self, user_message: str) -> ResolveRequest:
        """Build the resolver request for the next instruction."""

        return ResolveRequest(
            user_message=user_message,
            current_params=self.params,
            has_mask=self.has_mask,
        )

    def apply(self, result: ResolverResult) -> None:
        """Fold a resolution into the session."""

        self.params = result.params
        self.last_result = result

    def set_image(self, image: str) -> None:
        """Replace the working image; a mask drawn for the previous image no longer applies."""

        self.image = image
        self.mask = None

    def set_mask(self, mask: str) -> None:
        self.mask = mask

    def reset(self) -> None:
        self.params = StructuredParams()
        self.image = None
        self.mask = None
        self.last_result = None


class SessionStore:
    """Chat id -> `EditSession` mapping."""

    def __init__(self) -> None:
        self._sessions: dict[int, EditSession] = {}

    def get(self, chat_id: int) -> EditSession:
        """Return the chat's session, creating a fresh one on first use."""

        session = self._sessions.get(chat_id)
        if session is None:
            session = EditSession()
            self._sessions[chat_id] = session
        return session

    def __len__(self) -> int:
        return len(self._sessions)
