"""Persistence layer for the recipient directory."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import Recipient
from notifier.infrastructure.models import UserModel


class UserRepository:
    """Look up recipients by identifier."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> Recipient | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_map_by_ids(self, user_ids: Sequence[int]) -> dict[int, Recipient]:
        if not user_ids:
            return {}

        unique_ids = {int(user_id) for user_id in user_ids}
        query = self.session.query(UserModel).filter(UserModel.id.in_(unique_ids))
        return {model.id: self._to_entity(model) for model in query.all()}

    def add(self, recipient: Recipient) -> Recipient:
        model = UserModel(
            id=recipient.id,
            email=recipient.email,
            full_name=recipient.full_name,
            is_active=recipient.is_active,
        )
        self.session.add(model)
        self.session.flush()
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> Recipient:
        return Recipient(
            id=model.id,
            email=model.email,
            full_name=model.full_name,
            is_active=bool(model.is_active),
        )


__all__ = ["UserRepository"]
