from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base

from . import config

Base = declarative_base()


def make_engine(url: str = config.DATABASE_URL):
    return create_async_engine(url)
