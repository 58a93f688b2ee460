from sqlalchemy import Column, String, DateTime, BigInteger
from sqlalchemy.sql import func
from app.database import Base


class TelegramUser(Base):
    __tablename__ = "telegram_users"

    # Telegram user id, not generated by us
    id = Column(BigInteger, primary_key=True, autoincrement=False)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    username = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)  # last sync

    @property
    def display_name(self) -> str:
        full_name = " ".join(p for p in (self.first_name, self.last_name) if p)
        if full_name:
            return full_name
        if self.username:
            return f"@{self.username}"
        return "Unknown"
