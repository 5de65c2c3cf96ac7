from sqlalchemy.ext.asyncio import AsyncSession

from src.utils.logger import get_logger


class BaseService:
    """Service bound to the caller's session.

    Services never open sessions of their own; the request dependency or the
    test decides the unit of work.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = get_logger(self.__class__.__name__).bind(
            service=self.__class__.__name__
        )
