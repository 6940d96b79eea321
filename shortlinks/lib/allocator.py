"""Unique short code allocation with a bounded retry budget."""

import logging
from typing import Callable, Optional

from .database.base import MappingStoreBase, UniqueConstraintError
from .database.models import ShortLink
from .errors import ExhaustedRetriesError
from .shortcode import ShortCodeGenerator


class UniqueCodeAllocator:
    """Find generated codes that are not yet stored.

    The retry budget is small. With 64 symbols a 7 character code
    space holds ~4.4e12 codes, so repeated collisions mean the code length is
    too short for the table, not that more retries are needed.
    """

    def __init__(
        self,
        store: MappingStoreBase,
        generator: Optional[ShortCodeGenerator] = None,
        max_attempts: int = 5,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize allocator.

        Args:
            store: Store used for existence checks and inserts
            generator: Optional short code generator
            max_attempts: Default attempt budget
            logger: Optional logger
        """
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self.store = store
        self.generator = generator or ShortCodeGenerator()
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger(__name__)

    def _budget(self, max_attempts: Optional[int]) -> int:
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts <= 0:
            raise ValueError("max_attempts must be positive")
        return attempts

    async def allocate_unique_code(
        self,
        length: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> str:
        """Generate a code that is not stored yet.

        Args:
            length: Code length (generator default if not specified)
            max_attempts: Attempt budget override

        Returns:
            A code absent from the store at the time of the check

        Raises:
            ExhaustedRetriesError: If every candidate was already stored
            ValueError: If max_attempts is not positive
        """
        attempts = self._budget(max_attempts)

        for attempt in range(1, attempts + 1):
            code = self.generator.generate(length)
            if not await self.store.exists_by_code(code):
                if attempt > 1:
                    self.logger.debug(f"Generated code after {attempt} attempts: {code}")
                return code
            self.logger.debug(f"Collision on generated code {code} (attempt {attempt}/{attempts})")

        self.logger.error(f"Exhausted {attempts} attempts generating a unique code")
        raise ExhaustedRetriesError(attempts)

    async def insert_with_unique_code(
        self,
        build_link: Callable[[str], ShortLink],
        length: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> ShortLink:
        """Generate a code and insert the link built for it.

        The existence check and the insert are separate store calls, so a
        concurrent writer can still take the code in between. A rejected
        insert counts as a collision and consumes one attempt.

        Args:
            build_link: Builds the link to insert for a candidate code
            length: Code length (generator default if not specified)
            max_attempts: Attempt budget override

        Returns:
            The stored link

        Raises:
            ExhaustedRetriesError: If no candidate could be inserted
            ValueError: If max_attempts is not positive
        """
        attempts = self._budget(max_attempts)

        for attempt in range(1, attempts + 1):
            code = self.generator.generate(length)

            if await self.store.exists_by_code(code):
                self.logger.debug(f"Collision on generated code {code} (attempt {attempt}/{attempts})")
                continue

            try:
                return await self.store.insert(build_link(code))
            except UniqueConstraintError:
                self.logger.warning(
                    f"Insert rejected for generated code {code} (attempt {attempt}/{attempts})"
                )

        self.logger.error(f"Exhausted {attempts} attempts generating a unique code")
        raise ExhaustedRetriesError(attempts)
