"""
Match validation and transformation functionality.

This module turns loosely structured match rows (job store responses, workflow
callbacks) into strict ``JobMatch`` objects, dropping malformed rows.
"""

from collections.abc import Mapping
from time import time
from typing import Any, List, Optional

from pydantic import ValidationError

from app.log.logging import logger
from app.libs.search.exceptions import MalformedMatch
from app.schemas.job_match import JobMatch


class MatchValidator:
    """Handles validation and transformation of match rows."""

    # Fields that must be present and non-blank
    REQUIRED_FIELDS = ("title", "company")

    def validate_row_data(self, row: Mapping) -> None:
        """
        Check that a row carries every required field.

        Args:
            row: Raw match row

        Raises:
            MalformedMatch: If a required field is missing or blank
        """
        for field_name in self.REQUIRED_FIELDS:
            value = row.get(field_name)
            if not isinstance(value, str) or not value.strip():
                raise MalformedMatch(f"Match is missing required field '{field_name}'")

    def create_job_match(self, row: Any, **overrides: Any) -> Optional[JobMatch]:
        """
        Create a JobMatch instance from a raw row.

        Args:
            row: Raw match data
            **overrides: Values replacing those of the row (id, search_id, ...)

        Returns:
            JobMatch instance if the row is well formed, None otherwise
        """
        start_time = time()
        if not isinstance(row, Mapping):
            logger.warning("Skipping match row that is not a mapping", row_type=type(row).__name__)
            return None

        data = {**row, **overrides}
        try:
            self.validate_row_data(data)
            match = JobMatch.model_validate(data)
        except MalformedMatch as e:
            logger.debug("Skipping malformed match", reason=str(e), match_id=data.get("id"))
            return None
        except ValidationError as e:
            logger.debug(
                "Skipping match that failed validation",
                match_id=data.get("id"),
                errors=e.error_count(),
            )
            return None

        logger.trace(
            "Job match created",
            match_id=match.id,
            elapsed_time=f"{time() - start_time:.6f}s",
        )
        return match

    def filter_matches(self, rows: Any, **overrides: Any) -> List[JobMatch]:
        """
        Validate a batch of rows, keeping only well formed matches.

        A value that is not a list yields an empty result.
        """
        if not isinstance(rows, (list, tuple)):
            return []

        matches = []
        for row in rows:
            if isinstance(row, JobMatch):
                row = row.model_dump()
            match = self.create_job_match(row, **overrides)
            if match is not None:
                matches.append(match)

        dropped = len(rows) - len(matches)
        if dropped:
            logger.info("Dropped malformed matches", dropped=dropped, kept=len(matches))
        return matches


# Singleton instance
match_validator = MatchValidator()
