# backend/slicedadvice/repositories/expertise_post_repository.py
"""Data access for expertise posts, the trusted source of booking prices."""

import logging
from typing import Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.expertise_post import ExpertisePost
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ExpertisePostRepository(BaseRepository[ExpertisePost]):
    def __init__(self, db: Session):
        super().__init__(db, ExpertisePost)

    def get_active_by_id(self, post_id: str) -> Optional[ExpertisePost]:
        """Return the post only if it exists and is still bookable."""
        try:
            return cast(
                Optional[ExpertisePost],
                self._apply_eager_loading(self.db.query(ExpertisePost))
                .filter(ExpertisePost.id == post_id, ExpertisePost.is_active.is_(True))
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting active expertise post {post_id}: {str(e)}")
            raise RepositoryException(f"Failed to get expertise post: {str(e)}")

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(ExpertisePost.user))
