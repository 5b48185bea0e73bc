from sqlalchemy import BigInteger, Boolean, Column, String

from booking_bot.models.base import Base


class Account(Base):
    __tablename__ = "accounts"

    telegram_id = Column(BigInteger, primary_key=True, autoincrement=False)
    user_id = Column(String, nullable=False)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    role = Column(String, nullable=False)
    is_available = Column(Boolean, nullable=False, default=False)
    token = Column(String, nullable=False)
